"""Resource identifier parsing.

Recommendations reference resources by URN-like strings:

    //compute.googleapis.com/projects/<project>/zones/<zone>/instances/<name>
    projects/<project>/zones/<zone>/disks/<name>
    zones/<zone>/machineTypes/<type>

Parsing locates the literal tokens (``projects``, ``zones`` and the
collection name) and takes the segment that follows each one. Matching is
exact: no case folding and no trailing-slash cleanup.
"""

from dataclasses import dataclass
from typing import Optional

from automation.errors import ParseError

PROJECTS = 'projects'
ZONES = 'zones'
INSTANCES = 'instances'
DISKS = 'disks'
MACHINE_TYPES = 'machineTypes'


@dataclass(frozen=True)
class ResourceLocator:
    """Typed components of a zonal resource identifier."""
    project: str
    zone: str
    collection: str
    name: str

    def __str__(self) -> str:
        return f"projects/{self.project}/zones/{self.zone}/{self.collection}/{self.name}"


def _segment_after(parts: list[str], token: str) -> Optional[str]:
    """Return the non-empty segment following token, or None."""
    try:
        idx = parts.index(token)
    except ValueError:
        return None
    if idx + 1 >= len(parts) or not parts[idx + 1]:
        return None
    return parts[idx + 1]


def parse_resource(resource: str, collection: str) -> ResourceLocator:
    """Parse resource into a ResourceLocator for the given collection.

    Args:
        resource: Resource URN or relative resource path
        collection: Collection token expected in the path (e.g. 'instances')

    Raises:
        ParseError: If resource is not a string, or project, zone or
            collection name cannot be found
    """
    if not isinstance(resource, str):
        raise ParseError(f"resource must be a string, got {resource!r}")
    parts = resource.split('/')

    project = _segment_after(parts, PROJECTS)
    if project is None:
        raise ParseError(f"project not found in resource {resource!r}")

    zone = _segment_after(parts, ZONES)
    if zone is None:
        raise ParseError(f"zone not found in resource {resource!r}")

    name = _segment_after(parts, collection)
    if name is None:
        raise ParseError(f"{collection} not found in resource {resource!r}")

    return ResourceLocator(project=project, zone=zone, collection=collection, name=name)


def parse_machine_type(value: str) -> str:
    """Extract the machine type name from a machine type path.

    'zones/us-east1-b/machineTypes/e2-medium' -> 'e2-medium'
    """
    if not isinstance(value, str):
        raise ParseError(f"machine type must be a string, got {value!r}")
    name = _segment_after(value.split('/'), MACHINE_TYPES)
    if name is None:
        raise ParseError(f"machineTypes not found in {value!r}")
    return name
