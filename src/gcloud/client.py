"""Compute Engine and Recommender REST backend.

Implements the CloudService protocol with requests. Mutating compute
calls return a zone operation; the client blocks on the operation's
wait endpoint until it is DONE so that callers observe each effect before
issuing the next call.
"""

import logging
import re
import time
from datetime import datetime
from typing import Any, Optional

import requests

from automation.errors import CapabilityError
from automation.operations import Recommendation
from automation.service import Instance
from config import DriverConfig

logger = logging.getLogger(__name__)

# GCE resource names: lowercase letter first, then letters, digits, hyphens
_NAME_INVALID = re.compile(r'[^a-z0-9-]')
MAX_NAME_LENGTH = 63


def snapshot_name(disk: str, hint: str = '', now: Optional[datetime] = None) -> str:
    """Pick a snapshot name.

    A hint is used as-is unless it is empty or a placeholder such as
    '$snapshot-name'; otherwise the name is derived from the disk name and
    the current time.
    """
    if hint and not hint.startswith('$'):
        return hint
    stamp = (now or datetime.now()).strftime('%Y%m%d%H%M%S')
    base = _NAME_INVALID.sub('-', disk.lower()).strip('-') or 'disk'
    if not base[0].isalpha():
        base = f"d-{base}"
    base = base[:MAX_NAME_LENGTH - len(stamp) - 1].rstrip('-')
    return f"{base}-{stamp}"


class GoogleService:
    """CloudService backed by the Compute Engine v1 and Recommender v1 APIs."""

    def __init__(self, config: DriverConfig, session: Optional[requests.Session] = None):
        """Initialize the client.

        Args:
            config: Endpoints, timeouts and access token
            session: Optional preconfigured session (tests, proxies)
        """
        self.config = config
        self.session = session or requests.Session()

    # -------------------------------------------------------------------------
    # HTTP plumbing
    # -------------------------------------------------------------------------

    def _request(self, method: str, url: str, body: Optional[dict] = None,
                 params: Optional[dict] = None) -> dict:
        """Issue an API request and return the decoded JSON body.

        Raises:
            CapabilityError: On connection failure, timeout or HTTP error
        """
        headers = {'Accept': 'application/json'}
        if token := self.config.get_access_token():
            headers['Authorization'] = f"Bearer {token}"

        logger.debug(f"{method} {url}")
        try:
            resp = self.session.request(
                method,
                url,
                headers=headers,
                json=body,
                params=params,
                timeout=self.config.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise CapabilityError(f"Timeout calling {method} {url}") from e
        except requests.exceptions.ConnectionError as e:
            raise CapabilityError(f"Cannot connect to {url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise CapabilityError(f"Request {method} {url} failed: {e}") from e

        if resp.status_code >= 400:
            raise CapabilityError(f"{method} {url} returned {resp.status_code}: {_error_message(resp)}")

        if not resp.content:
            return {}
        try:
            data: dict = resp.json()
        except ValueError as e:
            raise CapabilityError(f"{method} {url} returned invalid JSON") from e
        return data

    def _zone_url(self, project: str, zone: str, *parts: str) -> str:
        return '/'.join([self.config.compute_endpoint, 'projects', project, 'zones', zone, *parts])

    def _wait(self, project: str, zone: str, operation: dict) -> None:
        """Block until a zone operation is DONE.

        Raises:
            CapabilityError: If the operation reports errors, exceeds
                operation_timeout, or the response carries no operation
        """
        start = time.monotonic()
        while operation.get('status') != 'DONE':
            if not operation.get('name'):
                raise CapabilityError(f"Zone {zone} in project {project} returned no operation")
            elapsed = time.monotonic() - start
            if elapsed >= self.config.operation_timeout:
                raise CapabilityError(
                    f"Operation {operation.get('name')} not done after {elapsed:.0f}s")
            logger.debug(f"Waiting for operation {operation.get('name')} ({operation.get('status')})")
            operation = self._request('POST', self._zone_url(project, zone, 'operations', operation['name'], 'wait'))
            if operation.get('status') != 'DONE':
                time.sleep(self.config.poll_interval)

        if errors := (operation.get('error') or {}).get('errors'):
            messages = '; '.join(e.get('message', e.get('code', '?')) for e in errors)
            raise CapabilityError(f"Operation {operation.get('name')} failed: {messages}")

    def _mutate(self, method: str, project: str, zone: str, *parts: str, body: Optional[dict] = None) -> None:
        operation = self._request(method, self._zone_url(project, zone, *parts), body=body)
        self._wait(project, zone, operation)

    # -------------------------------------------------------------------------
    # Compute resources
    # -------------------------------------------------------------------------

    def get_instance(self, project: str, zone: str, instance: str) -> Instance:
        """Fetch the current machine type and status of an instance."""
        return Instance.from_dict(self._request('GET', self._zone_url(project, zone, 'instances', instance)))

    def stop_instance(self, project: str, zone: str, instance: str) -> None:
        """Stop an instance and wait until the stop operation is done."""
        logger.info(f"Stopping instance {project}/{zone}/{instance}")
        self._mutate('POST', project, zone, 'instances', instance, 'stop')

    def start_instance(self, project: str, zone: str, instance: str) -> None:
        """Start an instance and wait until the start operation is done."""
        logger.info(f"Starting instance {project}/{zone}/{instance}")
        self._mutate('POST', project, zone, 'instances', instance, 'start')

    def change_machine_type(self, project: str, zone: str, instance: str, machine_type: str) -> None:
        """Set the machine type of a stopped instance."""
        logger.info(f"Setting machine type of {project}/{zone}/{instance} to {machine_type}")
        self._mutate('POST', project, zone, 'instances', instance, 'setMachineType',
                     body={'machineType': f"zones/{zone}/machineTypes/{machine_type}"})

    def create_snapshot(
        self,
        project: str,
        zone: str,
        disk: str,
        snapshot_name_hint: str,
        storage_locations: Optional[list[str]] = None,
    ) -> None:
        """Snapshot a disk, naming the snapshot from hint or disk name.

        Args:
            snapshot_name_hint: Requested name; placeholders such as
                '$snapshot-name' are replaced by a generated name
            storage_locations: Optional regions or multi-regions for the snapshot
        """
        name = snapshot_name(disk, snapshot_name_hint)
        body: dict[str, Any] = {'name': name}
        if storage_locations:
            body['storageLocations'] = list(storage_locations)
        logger.info(f"Creating snapshot {name} of disk {project}/{zone}/{disk}")
        self._mutate('POST', project, zone, 'disks', disk, 'createSnapshot', body=body)

    def delete_disk(self, project: str, zone: str, disk: str) -> None:
        """Delete a disk and wait until the delete operation is done."""
        logger.info(f"Deleting disk {project}/{zone}/{disk}")
        self._mutate('DELETE', project, zone, 'disks', disk)

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    def _mark(self, name: str, etag: str, verb: str) -> None:
        """POST a state transition; the etag must match the current recommendation."""
        url = f"{self.config.recommender_endpoint}/{name}:{verb}"
        self._request('POST', url, body={'etag': etag, 'stateMetadata': {}})

    def mark_recommendation_claimed(self, name: str, etag: str) -> None:
        """Move the recommendation to CLAIMED."""
        self._mark(name, etag, 'markClaimed')

    def mark_recommendation_succeeded(self, name: str, etag: str) -> None:
        """Move the recommendation to SUCCEEDED."""
        self._mark(name, etag, 'markSucceeded')

    def mark_recommendation_failed(self, name: str, etag: str) -> None:
        """Move the recommendation to FAILED."""
        self._mark(name, etag, 'markFailed')

    def get_recommendation(self, name: str) -> Recommendation:
        """Fetch one recommendation by its full resource name."""
        return Recommendation.from_dict(self._request('GET', f"{self.config.recommender_endpoint}/{name}"))

    def list_recommendations(
        self,
        project: str,
        location: str,
        recommender: str,
        state: Optional[str] = None,
    ) -> list[Recommendation]:
        """List recommendations of one recommender, following pagination.

        Args:
            state: Optional state filter (e.g. 'ACTIVE')
        """
        url = (f"{self.config.recommender_endpoint}/projects/{project}/locations/{location}"
               f"/recommenders/{recommender}/recommendations")
        params: dict[str, str] = {}
        if state:
            params['filter'] = f"stateInfo.state = {state.upper()}"

        results: list[Recommendation] = []
        while True:
            data = self._request('GET', url, params=dict(params))
            results.extend(Recommendation.from_dict(r) for r in data.get('recommendations') or [])
            page_token = data.get('nextPageToken')
            if not page_token:
                break
            params['pageToken'] = page_token
        return results


def _error_message(resp: requests.Response) -> str:
    """Extract the API error message from an error response."""
    try:
        message: str = resp.json()['error']['message']
        return message
    except (ValueError, KeyError, TypeError):
        return resp.text[:200]
