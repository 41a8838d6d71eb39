import pytest

from diskprov.shared.models import VmStorage


class FakeVm:
    """VM reference that records add_disk calls instead of creating disks."""

    def __init__(self, name="vm-test-01", storage=None, fail_on_call=None, error=None):
        self.name = name
        self.storage = storage
        self.calls = []
        self.fail_on_call = fail_on_call
        self.error = error or RuntimeError("add_disk failed")

    def add_disk(self, placeholder, size_mb, flags):
        if self.fail_on_call is not None and len(self.calls) + 1 == self.fail_on_call:
            raise self.error
        self.calls.append((placeholder, size_mb, dict(flags)))


@pytest.fixture
def datastore_vm():
    return FakeVm(storage=VmStorage(name="datastore1"))


@pytest.fixture
def bare_vm():
    return FakeVm(storage=None)
