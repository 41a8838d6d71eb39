from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field, field_validator

from diskprov.shared.models import DiskSpec


# --- Input Models ---
class DiskPlanRequest(BaseModel):
    options: Dict[str, Any] = Field(..., description="Request options, may contain ws_values and dialog sub-bags.")
    disk_option_prefix: Optional[str] = Field(None, description="Prefix of disk options, e.g. 'disk' in disk_1_size.")
    default_bootable: Optional[Any] = Field(None, description="Bootable value for disks that do not set one.")
    datastore_name: str = Field(..., min_length=1, description="Datastore the disks would be created on.")

    @field_validator('disk_option_prefix')
    @classmethod
    def check_prefix(cls, v):
        if v is not None and not v.strip():
            raise ValueError("disk_option_prefix must not be blank")
        return v


# --- Output Models ---
class AddDiskCall(BaseModel):
    index: str
    size_mb: int
    flags: Dict[str, Any] = Field(default_factory=dict)

class DiskPlanResponse(BaseModel):
    disk_option_prefix: str
    default_bootable: bool
    disks: List[DiskSpec] = Field(default_factory=list, description="Every disk index found, in creation order.")
    add_disk_calls: List[AddDiskCall] = Field(default_factory=list, description="Calls that would be issued to the VM API.")
    skipped: List[str] = Field(default_factory=list, description="Indices skipped because their size is 0 or negative.")

class HealthResponse(BaseModel):
    status: str = "ok"
