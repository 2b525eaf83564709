"""Driver configuration management.

Configuration is loaded from a config directory:
- driver.yaml: Project, location, recommenders and API settings
- secrets.yaml: Access token (optional, decrypted)

Resolution order for the config directory:
1. $RECOMMENDER_DRIVER_CONFIG environment variable
2. config/ in the repository (dev workspace)
3. /usr/local/etc/recommender-driver/ (installed)

The access token is taken from secrets.yaml (access_token) and falls back
to the GOOGLE_OAUTH_ACCESS_TOKEN environment variable.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

COMPUTE_ENDPOINT = 'https://compute.googleapis.com/compute/v1'
RECOMMENDER_ENDPOINT = 'https://recommender.googleapis.com/v1'

# Recommenders whose operations the engine can apply
DEFAULT_RECOMMENDERS = [
    'google.compute.disk.IdleResourceRecommender',
    'google.compute.instance.IdleResourceRecommender',
    'google.compute.instance.MachineTypeRecommender',
]


class ConfigError(Exception):
    """Configuration error."""


@dataclass
class DriverConfig:
    """Configuration for talking to the Compute and Recommender APIs."""
    config_file: Optional[Path] = None
    project: str = ''
    location: str = ''
    recommenders: list = field(default_factory=lambda: list(DEFAULT_RECOMMENDERS))
    compute_endpoint: str = COMPUTE_ENDPOINT
    recommender_endpoint: str = RECOMMENDER_ENDPOINT
    timeout: int = 30             # per HTTP request, seconds
    operation_timeout: int = 600  # waiting for a compute operation, seconds
    poll_interval: float = 2.0
    report_dir: Optional[Path] = None

    # Resolved from secrets.yaml or the environment at load time
    _access_token: str = field(default='', init=False, repr=False)

    def __post_init__(self):
        if isinstance(self.config_file, str):
            self.config_file = Path(self.config_file)
        if isinstance(self.report_dir, str):
            self.report_dir = Path(self.report_dir)

        if self.config_file is not None and self.config_file.exists():
            self._load_from_yaml()

        if not self._access_token:
            self._access_token = os.environ.get('GOOGLE_OAUTH_ACCESS_TOKEN', '')

    def _load_from_yaml(self):
        """Load settings from driver.yaml and the token from secrets.yaml."""
        assert self.config_file is not None
        data = _parse_yaml(self.config_file)

        # Explicit constructor values win over file values
        if not self.project:
            self.project = str(data.get('project', ''))
        if not self.location:
            self.location = str(data.get('location', ''))
        if recommenders := data.get('recommenders'):
            if not isinstance(recommenders, list):
                raise ConfigError(f"{self.config_file}: recommenders must be a list")
            self.recommenders = [str(r) for r in recommenders]

        if endpoint := data.get('compute_endpoint'):
            self.compute_endpoint = str(endpoint).rstrip('/')
        if endpoint := data.get('recommender_endpoint'):
            self.recommender_endpoint = str(endpoint).rstrip('/')

        try:
            self.timeout = int(data.get('timeout', self.timeout))
            self.operation_timeout = int(data.get('operation_timeout', self.operation_timeout))
            self.poll_interval = float(data.get('poll_interval', self.poll_interval))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{self.config_file}: invalid timeout setting: {e}") from e

        if self.report_dir is None and (report_dir := data.get('report_dir')):
            self.report_dir = Path(report_dir)

        secrets = _load_secrets(self.config_file.parent)
        if secrets:
            self._access_token = str(secrets.get('access_token', ''))

    def get_access_token(self) -> str:
        """Get resolved access token."""
        return self._access_token

    def set_access_token(self, token: str) -> None:
        self._access_token = token


def _parse_yaml(path: Path) -> dict:
    """Parse a YAML file and return contents."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    return data


def _load_secrets(config_dir: Path) -> Optional[dict]:
    """Load decrypted secrets from secrets.yaml."""
    secrets_file = config_dir / 'secrets.yaml'
    if not secrets_file.exists():
        return None
    return _parse_yaml(secrets_file)


def get_base_dir() -> Path:
    """Get the repository directory."""
    return Path(__file__).parent.parent  # src/ -> repo/


def get_config_dir() -> Path:
    """Discover the config directory.

    Resolution order:
    1. $RECOMMENDER_DRIVER_CONFIG environment variable
    2. config/ in the repository (dev workspace)
    3. /usr/local/etc/recommender-driver/
    """
    if env_path := os.environ.get('RECOMMENDER_DRIVER_CONFIG'):
        path = Path(env_path)
        if path.exists():
            return path
        raise ConfigError(f"RECOMMENDER_DRIVER_CONFIG={env_path} does not exist")

    local = get_base_dir() / 'config'
    if local.exists():
        return local

    fhs_path = Path('/usr/local/etc/recommender-driver')
    if fhs_path.exists():
        return fhs_path

    raise ConfigError(
        "config directory not found. "
        "Set RECOMMENDER_DRIVER_CONFIG or create config/driver.yaml."
    )


def load_config(config_file: Optional[Path] = None) -> DriverConfig:
    """Load driver configuration.

    Args:
        config_file: Explicit driver.yaml path; discovered when omitted
    """
    if config_file is None:
        config_file = get_config_dir() / 'driver.yaml'
    if not Path(config_file).exists():
        raise ConfigError(f"Config file not found: {config_file}")
    return DriverConfig(config_file=Path(config_file))
