import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from diskprov.shared import config
from diskprov.shared.models import VmStorage
from diskprov.core.errors import RetryRequested

logger = logging.getLogger(__name__)

# VM API answers that mean "busy, try the whole request again later"
RETRYABLE_STATUS_CODES = {409, 423, 503}


class VmApiClient:
    """Thin synchronous client for the provider VM REST API."""

    def __init__(
        self,
        base_url: str = config.VM_API_URL,
        timeout: float = config.VM_API_TIMEOUT_SECONDS,
        retry_delay_seconds: int = config.VM_API_RETRY_DELAY_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.retry_delay_seconds = retry_delay_seconds
        self.http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def add_disk(self, vm_id: str, size_mb: int, flags: Mapping[str, Any]) -> Dict[str, Any]:
        payload = {"size_mb": size_mb, **dict(flags)}
        logger.info(f"Calling VM API ({self.http.base_url}/api/v1/vms/{vm_id}/disks) with payload: {payload}")
        try:
            response = self.http.post(f"/api/v1/vms/{vm_id}/disks", json=payload)
        except httpx.TransportError as e:
            logger.error(f"Request error while calling VM API for VM {vm_id}: {e}")
            raise RetryRequested(self.retry_delay_seconds, f"VM API unreachable: {e}")

        if response.status_code in RETRYABLE_STATUS_CODES:
            logger.warning(f"VM API is busy for VM {vm_id}: {response.status_code} - {response.text}")
            raise RetryRequested(self.retry_delay_seconds, f"VM API returned {response.status_code} for VM {vm_id}")
        response.raise_for_status()
        logger.info(f"VM API added a {size_mb} MB disk to VM {vm_id}")
        return response.json() if response.content else {}

    def close(self):
        self.http.close()


class RemoteVm:
    """VM reference backed by the VM API, as consumed by the disk orchestrator."""

    def __init__(self, vm_id: str, client: VmApiClient, name: Optional[str] = None, storage: Optional[VmStorage] = None):
        self.id = vm_id
        self.name = name or vm_id
        self.storage = storage
        self.client = client

    @classmethod
    def from_descriptor(cls, descriptor: Mapping[str, Any], client: VmApiClient) -> "RemoteVm":
        # e.g. {"id": "vm-42", "name": "web01", "storage": {"name": "datastore1"}}
        storage = descriptor.get("storage")
        return cls(
            vm_id=str(descriptor["id"]),
            client=client,
            name=descriptor.get("name"),
            storage=VmStorage(**storage) if storage else None,
        )

    def add_disk(self, placeholder: Any, size_mb: int, flags: Mapping[str, Any]) -> Dict[str, Any]:
        return self.client.add_disk(self.id, size_mb, flags)

    def __repr__(self):
        return f"RemoteVm({self.id!r}, name={self.name!r})"
