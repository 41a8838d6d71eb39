import json
import logging
import time
from typing import Any, Dict, Mapping, Optional

import schedule
from kafka import KafkaConsumer, KafkaProducer
from kafka.errors import KafkaError

from diskprov.shared import config
from diskprov.shared.models import ProvisionRequest, Outcome, Retry, Fatal, OutcomeEnvelope
from diskprov.core.context import Context
from diskprov.core.orchestrator import provision_disks
from diskprov.connectors.vm_api import VmApiClient, RemoteVm

logger = logging.getLogger(__name__)

SCOPE_NAMES = ("inputs", "current", "object", "root", "state")


def _hydrate_vm(value: Any, vm_client: VmApiClient) -> Any:
    # VM descriptors travel as plain dicts; anything else is passed through
    if isinstance(value, Mapping) and "id" in value:
        return RemoteVm.from_descriptor(value, vm_client)
    return value


def build_context(event: Mapping[str, Any], vm_client: VmApiClient) -> Context:
    """Turn a provisioning event into the Context the engine runs against.

    Event shape::

        {"request_id": "...", "root": {"vmdb_object_type": "vm", "vm": {"id": "vm-1", ...}, ...},
         "inputs": {...}, "current": {...}, "object": {...}, "state": {...}}
    """
    scopes: Dict[str, Dict[str, Any]] = {}
    for name in SCOPE_NAMES:
        attributes = dict(event.get(name) or {})
        if "vm" in attributes:
            attributes["vm"] = _hydrate_vm(attributes["vm"], vm_client)
        scopes[name] = attributes

    provision_request = scopes["root"].get("miq_provision")
    if isinstance(provision_request, Mapping):
        scopes["root"]["miq_provision"] = ProvisionRequest(
            vm=_hydrate_vm(provision_request.get("vm"), vm_client),
            options=dict(provision_request.get("options") or {}),
        )

    return Context(
        inputs=scopes["inputs"],
        current=scopes["current"],
        obj=scopes["object"],
        root=scopes["root"],
        state=scopes["state"],
    )


class ProvisioningWorker:
    """Runs provisioning events and acts on their outcome: results are
    published, retries are re-run from scratch after the requested delay."""

    def __init__(
        self,
        producer,
        vm_client: VmApiClient,
        scheduler: Optional[schedule.Scheduler] = None,
        results_topic: str = config.KAFKA_RESULTS_TOPIC,
        max_attempts: int = config.MAX_RETRY_ATTEMPTS,
    ):
        self.producer = producer
        self.vm_client = vm_client
        self.scheduler = scheduler or schedule.Scheduler()
        self.results_topic = results_topic
        self.max_attempts = max_attempts

    def handle_event(self, event: Mapping[str, Any], attempt: int = 1) -> Outcome:
        if not isinstance(event, Mapping):
            logger.error(f"Discarding malformed provisioning event of type {type(event).__name__}: {event!r}")
            outcome = Fatal(message="malformed provisioning event")
            self.publish("unknown_id", attempt, outcome)
            return outcome

        request_id = str(event.get("request_id", "unknown_id"))
        logger.info(f"[{request_id}] Processing disk provisioning request (attempt {attempt}/{self.max_attempts})")

        try:
            outcome = provision_disks(build_context(event, self.vm_client))
        except Exception as e:
            # add_disk failures are not translated by the engine; the request stops here
            logger.error(f"[{request_id}] Disk provisioning aborted: {e}", exc_info=True)
            outcome = Fatal(message=f"Disk provisioning aborted: {e}")

        if isinstance(outcome, Retry):
            if attempt >= self.max_attempts:
                logger.error(f"[{request_id}] Giving up after {attempt} attempts: {outcome.reason}")
                outcome = Fatal(message=f"Gave up after {attempt} attempts: {outcome.reason}")
            else:
                self.schedule_retry(event, attempt + 1, outcome.delay_seconds)

        self.publish(request_id, attempt, outcome)
        return outcome

    def schedule_retry(self, event: Mapping[str, Any], attempt: int, delay_seconds: int):
        # NOTE: the replay re-adds disks created by an earlier attempt; there is no idempotency guard
        def replay():
            self.handle_event(event, attempt)
            return schedule.CancelJob

        self.scheduler.every(max(int(delay_seconds), 1)).seconds.do(replay)
        logger.info(f"[{event.get('request_id', 'unknown_id')}] Retry {attempt} scheduled in {delay_seconds} seconds.")

    def publish(self, request_id: str, attempt: int, outcome: Outcome):
        envelope = OutcomeEnvelope(request_id=request_id, attempt=attempt, outcome=outcome)
        try:
            future = self.producer.send(self.results_topic, value=envelope.model_dump(mode="json"))
            record_metadata = future.get(timeout=10)
            logger.info(f"[{request_id}] Published '{outcome.result}' outcome to Kafka topic '{self.results_topic}' at offset {record_metadata.offset}.")
        except KafkaError as e:
            logger.error(f"[{request_id}] Failed to publish outcome to Kafka: {e}")


def connect_consumer(max_retries: int = 10, retry_delay: int = 10) -> Optional[KafkaConsumer]:
    retries = 0
    while retries < max_retries:
        try:
            consumer = KafkaConsumer(
                config.KAFKA_PROVISIONING_TOPIC,
                bootstrap_servers=config.KAFKA_BOOTSTRAP_SERVERS,
                auto_offset_reset='earliest',
                group_id=config.KAFKA_CONSUMER_GROUP_ID,
                value_deserializer=lambda v: json.loads(v.decode('utf-8')),
            )
            logger.info(f"Successfully connected to Kafka and subscribed to topic: {config.KAFKA_PROVISIONING_TOPIC}.")
            return consumer
        except KafkaError as e:
            retries += 1
            logger.error(f"Failed to connect to Kafka (attempt {retries}/{max_retries}): {e}")
            if retries >= max_retries:
                logger.error("Max retries reached. Exiting worker.")
                return None
            logger.info(f"Retrying in {retry_delay} seconds...")
            time.sleep(retry_delay)
    return None


def main():
    config.configure_logging()
    logger.info("Disk Provisioning Worker starting...")

    consumer = connect_consumer()
    if not consumer:
        return
    producer = KafkaProducer(
        bootstrap_servers=config.KAFKA_BOOTSTRAP_SERVERS,
        value_serializer=lambda v: json.dumps(v).encode('utf-8'),
        retries=5,
        acks='all',
    )
    vm_client = VmApiClient()
    worker = ProvisioningWorker(producer, vm_client)

    logger.info("Waiting for messages...")
    try:
        while True:
            records = consumer.poll(timeout_ms=1000)
            for messages in records.values():
                for message in messages:
                    logger.info(f"Received message from topic '{message.topic}' (partition {message.partition}, offset {message.offset})")
                    worker.handle_event(message.value)
            worker.scheduler.run_pending()
    except KeyboardInterrupt:
        logger.info("Disk Provisioning Worker shutting down (KeyboardInterrupt)...")
    finally:
        logger.info("Closing Kafka consumer and producer.")
        consumer.close()
        producer.flush()
        producer.close()
        vm_client.close()
        logger.info("Disk Provisioning Worker stopped.")


if __name__ == "__main__":
    main()
