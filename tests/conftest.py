"""Shared pytest fixtures for recommender-driver tests."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from automation.service import Instance  # noqa: E402

PROJECT = 'rightsizer-test'
INSTANCE_URN = f'//compute.googleapis.com/projects/{PROJECT}/zones/us-central1-a/instances/web-1'
DISK_URN = f'//compute.googleapis.com/projects/{PROJECT}/zones/europe-west1-d/disks/data-1'
SNAPSHOT_URN = f'//compute.googleapis.com/projects/{PROJECT}/global/snapshots/$snapshot-name'
RECOMMENDATION_NAME = ('projects/323016592286/locations/us-central1-a/recommenders/'
                       'google.compute.instance.MachineTypeRecommender/recommendations/5df355d9')
ETAG = '"40204a1000e5befe"'


class RecordingService:
    """CloudService double that records every call as (method, args).

    Args:
        instance: Instance returned by get_instance
        fail_on: Map of method name to exception raised when it is called
    """

    def __init__(self, instance=None, fail_on=None):
        self.instance = instance or Instance(name='web-1', machine_type='', status='')
        self.fail_on = fail_on or {}
        self.calls = []

    def _record(self, method, *args):
        self.calls.append((method, args))
        if method in self.fail_on:
            raise self.fail_on[method]

    @property
    def methods(self):
        return [method for method, _ in self.calls]

    def get_instance(self, project, zone, instance):
        self._record('get_instance', project, zone, instance)
        return self.instance

    def stop_instance(self, project, zone, instance):
        self._record('stop_instance', project, zone, instance)

    def start_instance(self, project, zone, instance):
        self._record('start_instance', project, zone, instance)

    def change_machine_type(self, project, zone, instance, machine_type):
        self._record('change_machine_type', project, zone, instance, machine_type)

    def create_snapshot(self, project, zone, disk, snapshot_name_hint, storage_locations=None):
        self._record('create_snapshot', project, zone, disk, snapshot_name_hint, storage_locations)

    def delete_disk(self, project, zone, disk):
        self._record('delete_disk', project, zone, disk)

    def mark_recommendation_claimed(self, name, etag):
        self._record('mark_recommendation_claimed', name, etag)

    def mark_recommendation_succeeded(self, name, etag):
        self._record('mark_recommendation_succeeded', name, etag)

    def mark_recommendation_failed(self, name, etag):
        self._record('mark_recommendation_failed', name, etag)


@pytest.fixture
def service():
    """Recording service whose instance runs on e2-standard-2."""
    return RecordingService(instance=Instance(
        name='web-1',
        machine_type='zones/us-central1-a/machineTypes/e2-standard-2',
        status='RUNNING',
    ))


@pytest.fixture
def make_service():
    """Factory for recording services with custom instance or failures."""
    return RecordingService


def recommendation_doc(*operations, state='ACTIVE', groups=None):
    """Build a Recommender API document with one group of operations."""
    return {
        'name': RECOMMENDATION_NAME,
        'etag': ETAG,
        'description': 'Save cost by changing machine type',
        'recommenderSubtype': 'CHANGE_MACHINE_TYPE',
        'stateInfo': {'state': state},
        'content': {
            'operationGroups': groups if groups is not None else [{'operations': list(operations)}],
        },
    }


@pytest.fixture
def machine_type_doc():
    """Recommendation that checks then changes an instance's machine type."""
    return recommendation_doc(
        {
            'action': 'test',
            'path': '/machineType',
            'resource': INSTANCE_URN,
            'resourceType': 'compute.googleapis.com/Instance',
            'valueMatcher': {'matchesPattern': '.*zones/us-central1-a/machineTypes/e2-standard-2'},
        },
        {
            'action': 'replace',
            'path': '/machineType',
            'resource': INSTANCE_URN,
            'resourceType': 'compute.googleapis.com/Instance',
            'value': 'zones/us-central1-a/machineTypes/e2-medium',
        },
    )


@pytest.fixture
def snapshot_and_delete_doc():
    """Recommendation that snapshots then deletes an idle disk."""
    return recommendation_doc(
        {
            'action': 'add',
            'path': '/',
            'resource': SNAPSHOT_URN,
            'resourceType': 'compute.googleapis.com/Snapshot',
            'value': {
                'name': '$snapshot-name',
                'sourceDisk': f'projects/{PROJECT}/zones/europe-west1-d/disks/data-1',
                'storageLocations': ['europe-west1'],
            },
        },
        {
            'action': 'remove',
            'path': '/',
            'resource': DISK_URN,
            'resourceType': 'compute.googleapis.com/Disk',
        },
    )
