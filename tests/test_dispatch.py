"""Tests for automation.dispatch module."""

import pytest

from automation.dispatch import dispatch, plan
from automation.errors import (
    CapabilityError,
    ParseError,
    PredicateFailedError,
    UnsupportedOperationError,
    ValueTypeError,
)
from automation.operations import Operation
from automation.service import Instance
from conftest import DISK_URN, INSTANCE_URN, PROJECT, SNAPSHOT_URN

INSTANCE = 'compute.googleapis.com/Instance'
LOC = (PROJECT, 'us-central1-a', 'web-1')


def _op(action, path, resource_type=INSTANCE, resource=INSTANCE_URN, **kwargs):
    return Operation(action=action, path=path, resource_type=resource_type, resource=resource, **kwargs)


class TestTestOperations:
    """Tests for test /machineType and test /status."""

    def test_machine_type_pattern(self, service):
        op = _op('test', '/machineType', value_matcher={'matchesPattern': '.*machineTypes/e2-standard-2'})
        dispatch(service, op)
        assert service.calls == [('get_instance', LOC)]

    def test_status_value(self, service):
        dispatch(service, _op('test', '/status', value='RUNNING'))
        assert service.calls == [('get_instance', LOC)]

    def test_action_is_case_insensitive(self, service):
        dispatch(service, _op('TEST', '/status', value='RUNNING'))
        assert service.methods == ['get_instance']

    def test_machine_type_mismatch(self, make_service):
        service = make_service(instance=Instance(machine_type='@#$%!E'))
        op = _op('test', '/machineType', value_matcher={'matchesPattern': '.*machineTypes/e2-standard-2'})
        with pytest.raises(PredicateFailedError) as exc:
            dispatch(service, op)
        assert exc.value.observed == '@#$%!E'
        assert isinstance(exc.value, CapabilityError)
        assert service.methods == ['get_instance']

    def test_status_mismatch(self, service):
        with pytest.raises(PredicateFailedError, match='status'):
            dispatch(service, _op('test', '/status', value='TERMINATED'))

    def test_non_string_value(self, service):
        with pytest.raises(ValueTypeError):
            dispatch(service, _op('test', '/status', value=42))

    def test_get_instance_failure_propagates(self, make_service):
        service = make_service(fail_on={'get_instance': CapabilityError('boom')})
        with pytest.raises(CapabilityError, match='boom'):
            dispatch(service, _op('test', '/status', value='RUNNING'))

    def test_bad_resource(self, service):
        with pytest.raises(ParseError):
            dispatch(service, _op('test', '/status', resource='//compute.googleapis.com/instances/x',
                                  value='RUNNING'))
        assert service.calls == []


class TestReplaceOperations:
    """Tests for replace /machineType and replace /status."""

    def test_machine_type_stop_change_start(self, service):
        dispatch(service, _op('replace', '/machineType', value='zones/us-east1-b/machineTypes/custom-2-5120'))
        assert service.calls == [
            ('stop_instance', LOC),
            ('change_machine_type', LOC + ('custom-2-5120',)),
            ('start_instance', LOC),
        ]

    def test_machine_type_stops_after_failed_change(self, make_service):
        service = make_service(fail_on={'change_machine_type': CapabilityError('quota')})
        with pytest.raises(CapabilityError):
            dispatch(service, _op('replace', '/machineType', value='zones/z/machineTypes/e2-medium'))
        assert service.methods == ['stop_instance', 'change_machine_type']

    def test_machine_type_value_must_be_string(self, service):
        with pytest.raises(ValueTypeError):
            dispatch(service, _op('replace', '/machineType', value={'name': 'e2-medium'}))
        assert service.calls == []

    def test_status_terminated(self, service):
        dispatch(service, _op('replace', '/status', value='TERMINATED'))
        assert service.calls == [('stop_instance', LOC)]

    @pytest.mark.parametrize('value', ['RUNNING', 'terminated', 'CLOSED', None])
    def test_status_other_values_unsupported(self, service, value):
        with pytest.raises(UnsupportedOperationError):
            dispatch(service, _op('replace', '/status', value=value))
        assert service.calls == []


class TestAddRemoveOperations:
    """Tests for add Snapshot and remove Disk."""

    def test_add_snapshot_uses_source_disk(self, service):
        op = _op('add', '/', resource_type='compute.googleapis.com/Snapshot', resource=SNAPSHOT_URN,
                 value={'name': '$snapshot-name',
                        'sourceDisk': f'projects/{PROJECT}/zones/europe-west1-d/disks/data-1',
                        'storageLocations': ['europe-west1']})
        dispatch(service, op)
        assert service.calls == [
            ('create_snapshot', (PROJECT, 'europe-west1-d', 'data-1', '$snapshot-name', ['europe-west1'])),
        ]

    def test_add_snapshot_any_path(self, service):
        op = _op('add', '/anything', resource_type='compute.googleapis.com/Snapshot', resource=DISK_URN)
        dispatch(service, op)
        assert service.calls == [('create_snapshot', (PROJECT, 'europe-west1-d', 'data-1', '', None))]

    def test_remove_disk(self, service):
        dispatch(service, _op('remove', '/', resource_type='compute.googleapis.com/Disk', resource=DISK_URN))
        assert service.calls == [('delete_disk', (PROJECT, 'europe-west1-d', 'data-1'))]

    def test_remove_disk_null_resource(self, service):
        with pytest.raises(ParseError):
            dispatch(service, _op('remove', '/', resource_type='compute.googleapis.com/Disk', resource=None))
        assert service.calls == []

    def test_add_snapshot_non_string_source_disk(self, service):
        op = _op('add', '/', resource_type='compute.googleapis.com/Snapshot', resource=SNAPSHOT_URN,
                 value={'name': 'snap', 'sourceDisk': 42})
        with pytest.raises(ParseError, match='must be a string'):
            dispatch(service, op)
        assert service.calls == []


class TestUnsupported:
    """Tests for routing failures."""

    @pytest.mark.parametrize('op', [
        _op('copy', '/machineType', value='x'),
        _op('move', '/status'),
        _op('test', '/machineType', resource_type='compute.googleapis.com/CPU', value='x'),
        _op('replace', '/machineType', resource_type='compute.googleapis.com/Disk', value='x'),
        _op('add', '/', resource_type='compute.googleapis.com/Disk'),
        _op('remove', '/', resource_type='compute.googleapis.com/Instance'),
        _op('replace', '/coreCount', value='4'),
        _op('test', '/name', value='web-1'),
    ])
    def test_unsupported_makes_no_calls(self, service, op):
        with pytest.raises(UnsupportedOperationError):
            dispatch(service, op)
        assert service.calls == []

    def test_resource_type_checked_before_path(self, service):
        op = _op('test', '/status', resource_type='compute.googleapis.com/Disk', value='READY')
        with pytest.raises(UnsupportedOperationError, match='resource type'):
            dispatch(service, op)


class TestPlan:
    """Tests for plan()."""

    def test_replace_machine_type(self):
        assert plan(_op('replace', '/machineType', value='zones/z/machineTypes/e2-medium')) == [
            'stop_instance', 'change_machine_type', 'start_instance']

    def test_remove_disk(self):
        assert plan(_op('remove', '/', resource_type='compute.googleapis.com/Disk')) == ['delete_disk']

    def test_unsupported(self):
        with pytest.raises(UnsupportedOperationError):
            plan(_op('replace', '/status', value='RUNNING'))
