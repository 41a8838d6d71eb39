import httpx
import pytest
import schedule
from kafka.errors import KafkaError

from diskprov.connectors.vm_api import VmApiClient, RemoteVm
from diskprov.shared.models import ParameterSource, ProvisionRequest, Success, Retry, Fatal
from diskprov.worker.main import ProvisioningWorker, build_context


class FakeRecordMetadata:
    offset = 17


class FakeFuture:
    def __init__(self, error=None):
        self.error = error

    def get(self, timeout=None):
        if self.error:
            raise self.error
        return FakeRecordMetadata()


class FakeProducer:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send(self, topic, value=None):
        self.sent.append((topic, value))
        return FakeFuture(self.error)


class VmApiStub:
    """Answers add_disk with queued status codes, then 201."""

    def __init__(self, statuses=()):
        self.statuses = list(statuses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        status = self.statuses.pop(0) if self.statuses else 201
        return httpx.Response(status, json={})


def _worker(stub, producer=None, max_attempts=3):
    client = VmApiClient(base_url="http://vm-api.test", transport=httpx.MockTransport(stub), retry_delay_seconds=5)
    return ProvisioningWorker(producer or FakeProducer(), client, scheduler=schedule.Scheduler(), results_topic="results", max_attempts=max_attempts)


def _vm_event(**root):
    return {
        "request_id": "req-1",
        "root": {"vmdb_object_type": "vm", "vm": {"id": "vm-42", "name": "web01", "storage": {"name": "ds1"}}, **root},
    }


class TestBuildContext:
    def test_vm_descriptor_hydrated(self):
        client = VmApiClient(base_url="http://vm-api.test", transport=httpx.MockTransport(VmApiStub()))
        context = build_context(_vm_event(disk_1_size=1), client)
        vm = context.root["vm"]
        assert isinstance(vm, RemoteVm)
        assert vm.storage.name == "ds1"

    def test_provision_request_hydrated(self):
        client = VmApiClient(base_url="http://vm-api.test", transport=httpx.MockTransport(VmApiStub()))
        event = {"root": {"vmdb_object_type": "miq_provision", "miq_provision": {"vm": {"id": "vm-1"}, "options": {"disk_1_size": 1}}}}
        request = build_context(event, client).root["miq_provision"]
        assert isinstance(request, ProvisionRequest)
        assert isinstance(request.vm, RemoteVm)
        assert request.options == {"disk_1_size": 1}

    def test_object_scope_is_read(self):
        client = VmApiClient(base_url="http://vm-api.test", transport=httpx.MockTransport(VmApiStub()))
        context = build_context({"object": {"disk_option_prefix": "vol"}}, client)
        assert context.scope(ParameterSource.OBJECT)["disk_option_prefix"] == "vol"
        assert context.root.attributes == {}


class TestHandleEvent:
    def test_success_is_published(self):
        stub = VmApiStub()
        producer = FakeProducer()
        outcome = _worker(stub, producer).handle_event(_vm_event(disk_1_size=2, disk_2_size=0))

        assert isinstance(outcome, Success)
        assert len(stub.requests) == 1
        topic, value = producer.sent[0]
        assert topic == "results"
        assert value["request_id"] == "req-1"
        assert value["outcome"]["result"] == "ok"
        assert [d["status"] for d in value["outcome"]["disks"]] == ["CREATED", "SKIPPED"]

    def test_fatal_is_published(self):
        producer = FakeProducer()
        outcome = _worker(VmApiStub(), producer).handle_event({"request_id": "req-2", "root": {"vmdb_object_type": "service"}})
        assert isinstance(outcome, Fatal)
        assert producer.sent[0][1]["outcome"]["message"] == "Can not handle vmdb_object_type: service"

    def test_retry_schedules_replay_until_success(self):
        stub = VmApiStub(statuses=[503])
        producer = FakeProducer()
        worker = _worker(stub, producer)

        outcome = worker.handle_event(_vm_event(disk_1_size=1))
        assert isinstance(outcome, Retry)
        assert outcome.delay_seconds == 5
        assert len(worker.scheduler.jobs) == 1

        worker.scheduler.run_all()
        assert worker.scheduler.jobs == []
        assert [v["outcome"]["result"] for _, v in producer.sent] == ["retry", "ok"]
        assert [v["attempt"] for _, v in producer.sent] == [1, 2]

    def test_gives_up_after_max_attempts(self):
        producer = FakeProducer()
        worker = _worker(VmApiStub(statuses=[503, 503]), producer, max_attempts=2)

        worker.handle_event(_vm_event(disk_1_size=1))
        worker.scheduler.run_all()

        results = [v["outcome"]["result"] for _, v in producer.sent]
        assert results == ["retry", "error"]
        assert "Gave up after 2 attempts" in producer.sent[-1][1]["outcome"]["message"]
        assert worker.scheduler.jobs == []

    @pytest.mark.parametrize("event", [["not", "an", "event"], "disk_1_size=1", 42, None])
    def test_non_object_event_is_published_as_fatal(self, event):
        stub = VmApiStub()
        producer = FakeProducer()
        worker = _worker(stub, producer)

        outcome = worker.handle_event(event)

        assert outcome == Fatal(message="malformed provisioning event")
        assert producer.sent[0][1]["request_id"] == "unknown_id"
        assert producer.sent[0][1]["outcome"]["result"] == "error"
        assert stub.requests == []
        assert worker.scheduler.jobs == []

    def test_add_disk_error_becomes_fatal(self):
        producer = FakeProducer()
        outcome = _worker(VmApiStub(statuses=[400]), producer).handle_event(_vm_event(disk_1_size=1))
        assert isinstance(outcome, Fatal)
        assert outcome.message.startswith("Disk provisioning aborted")

    def test_publish_failure_is_logged_not_raised(self, caplog):
        producer = FakeProducer(error=KafkaError("broker down"))
        outcome = _worker(VmApiStub(), producer).handle_event(_vm_event(disk_1_size=1))
        assert isinstance(outcome, Success)
        assert "Failed to publish outcome" in caplog.text
