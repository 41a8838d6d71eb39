from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, ConfigDict


class VmStorage(BaseModel): # Datastore a VM currently lives on
    name: str


class ProvisionRequest(BaseModel):
    # Minimal provisioning request: the VM being built and the request options
    # (including dest_storage, ws_values and dialog sub-bags)
    vm: Any = None
    options: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True)


class RequestContext(BaseModel):
    request_type: Optional[str] = None # Raw vmdb_object_type, validated by the options normalizer
    provision_request: Any = None # Object exposing .vm and .options, present for provisioning requests
    root_attributes: Dict[str, Any] = Field(default_factory=dict) # Snapshot of the root scope

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def vm(self) -> Any:
        return getattr(self.provision_request, "vm", None) if self.provision_request is not None else None
