"""Cloud capability interface consumed by the dispatcher and orchestrator.

Backends (the Compute/Recommender REST client, test doubles) implement
CloudService. Every call is synchronous and raises CapabilityError on
failure; there is no partial success.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@dataclass
class Instance:
    """Subset of a compute instance read by test operations."""
    name: str = ''
    machine_type: str = ''
    status: str = ''

    @classmethod
    def from_dict(cls, data: dict) -> 'Instance':
        return cls(
            name=data.get('name', ''),
            machine_type=data.get('machineType', ''),
            status=data.get('status', ''),
        )


@runtime_checkable
class CloudService(Protocol):
    """Protocol for backends that read and mutate resources and recommendations."""

    def get_instance(self, project: str, zone: str, instance: str) -> Instance:
        ...

    def stop_instance(self, project: str, zone: str, instance: str) -> None:
        ...

    def start_instance(self, project: str, zone: str, instance: str) -> None:
        ...

    def change_machine_type(self, project: str, zone: str, instance: str, machine_type: str) -> None:
        ...

    def create_snapshot(
        self,
        project: str,
        zone: str,
        disk: str,
        snapshot_name_hint: str,
        storage_locations: Optional[list[str]] = None,
    ) -> None:
        ...

    def delete_disk(self, project: str, zone: str, disk: str) -> None:
        ...

    def mark_recommendation_claimed(self, name: str, etag: str) -> None:
        ...

    def mark_recommendation_succeeded(self, name: str, etag: str) -> None:
        ...

    def mark_recommendation_failed(self, name: str, etag: str) -> None:
        ...
