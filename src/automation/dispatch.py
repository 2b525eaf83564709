"""Route a single operation to the cloud calls that carry it out.

Routing is a table keyed by (Action, ResourceType, Path). A Path of None
means the route accepts any path. Resource type is checked before path:
an operation whose resource type has no route for its action is
unsupported whatever its path.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from automation.errors import PredicateFailedError, UnsupportedOperationError, ValueTypeError
from automation.locator import DISKS, INSTANCES, parse_machine_type, parse_resource
from automation.operations import Action, Operation, Path, ResourceType
from automation.service import CloudService

logger = logging.getLogger(__name__)

TERMINATED = 'TERMINATED'


@dataclass(frozen=True)
class Route:
    """Handler for one (action, resource type, path) combination."""
    handler: Callable[[CloudService, Operation], None]
    calls: tuple[str, ...]


def _instance(operation: Operation):
    return parse_resource(operation.resource, INSTANCES)


def _check_field(service: CloudService, operation: Operation, field: str) -> None:
    loc = _instance(operation)
    instance = service.get_instance(loc.project, loc.zone, loc.name)
    observed = getattr(instance, field)
    condition = operation.condition
    if not condition.matches(observed):
        raise PredicateFailedError(operation.path.lstrip('/'), observed, str(condition))
    logger.debug(f"{loc.name}: {operation.path} {observed!r} matches {condition}")


def check_machine_type(service: CloudService, operation: Operation) -> None:
    _check_field(service, operation, 'machine_type')


def check_status(service: CloudService, operation: Operation) -> None:
    _check_field(service, operation, 'status')


def replace_machine_type(service: CloudService, operation: Operation) -> None:
    loc = _instance(operation)
    if not isinstance(operation.value, str):
        raise ValueTypeError("machine type value must be of type string")
    machine_type = parse_machine_type(operation.value)

    # No rollback between steps: a failed change leaves the instance stopped
    logger.info(f"Changing machine type of {loc.name} to {machine_type}")
    service.stop_instance(loc.project, loc.zone, loc.name)
    service.change_machine_type(loc.project, loc.zone, loc.name, machine_type)
    service.start_instance(loc.project, loc.zone, loc.name)


def stop_instance(service: CloudService, operation: Operation) -> None:
    loc = _instance(operation)
    logger.info(f"Stopping instance {loc.name}")
    service.stop_instance(loc.project, loc.zone, loc.name)


def _snapshot_payload(operation: Operation) -> dict[str, Any]:
    return operation.value if isinstance(operation.value, dict) else {}


def add_snapshot(service: CloudService, operation: Operation) -> None:
    payload = _snapshot_payload(operation)
    # resource names the (global) snapshot to create; sourceDisk names the disk
    source = payload.get('sourceDisk') or operation.resource
    loc = parse_resource(source, DISKS)
    logger.info(f"Creating snapshot of disk {loc.name}")
    service.create_snapshot(
        loc.project,
        loc.zone,
        loc.name,
        payload.get('name') or '',
        storage_locations=payload.get('storageLocations'),
    )


def remove_disk(service: CloudService, operation: Operation) -> None:
    loc = parse_resource(operation.resource, DISKS)
    logger.info(f"Deleting disk {loc.name}")
    service.delete_disk(loc.project, loc.zone, loc.name)


ROUTES: dict[tuple[Action, ResourceType, Optional[Path]], Route] = {
    (Action.TEST, ResourceType.INSTANCE, Path.MACHINE_TYPE): Route(check_machine_type, ('get_instance',)),
    (Action.TEST, ResourceType.INSTANCE, Path.STATUS): Route(check_status, ('get_instance',)),
    (Action.REPLACE, ResourceType.INSTANCE, Path.MACHINE_TYPE): Route(
        replace_machine_type, ('stop_instance', 'change_machine_type', 'start_instance')),
    (Action.REPLACE, ResourceType.INSTANCE, Path.STATUS): Route(stop_instance, ('stop_instance',)),
    (Action.ADD, ResourceType.SNAPSHOT, None): Route(add_snapshot, ('create_snapshot',)),
    (Action.REMOVE, ResourceType.DISK, None): Route(remove_disk, ('delete_disk',)),
}


def resolve(operation: Operation) -> Route:
    """Find the route for operation.

    Raises:
        UnsupportedOperationError: If no route matches
    """
    action = Action.parse(operation.action)
    if action is None:
        raise UnsupportedOperationError(f"action {operation.action!r} is not supported")

    resource_type = ResourceType.parse(operation.resource_type)
    candidates = {key: route for key, route in ROUTES.items()
                  if key[0] == action and key[1] == resource_type}
    if not candidates:
        raise UnsupportedOperationError(
            f"resource type {operation.resource_type!r} is not supported for {action.value}")

    path = Path.parse(operation.path)
    route = candidates.get((action, resource_type, path)) if path else None
    if route is None:
        route = candidates.get((action, resource_type, None))
    if route is None:
        raise UnsupportedOperationError(
            f"path {operation.path!r} is not supported for {action.value} {operation.resource_type}")

    if (action, path) == (Action.REPLACE, Path.STATUS) and operation.value != TERMINATED:
        raise UnsupportedOperationError(f"replacing status with {operation.value!r} is not supported")

    return route


def dispatch(service: CloudService, operation: Operation) -> None:
    """Carry out operation against service.

    Raises:
        AutomationError: On unsupported operations, unparsable resources,
            failed tests, or backend failures
    """
    route = resolve(operation)
    logger.debug(f"Dispatching {operation.describe()} via {route.handler.__name__}")
    route.handler(service, operation)


def plan(operation: Operation) -> list[str]:
    """Capability calls dispatch would issue for operation, without calling them."""
    return list(resolve(operation).calls)
