from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, ConfigDict, field_validator

from .enums import DiskStatus

MB_PER_GB = 1024


def index_sort_key(index: str):
    # Numeric order first; the raw text keeps "01" and "1" apart deterministically
    return (int(index), index)


class DiskSpec(BaseModel): # One fully-defaulted disk request, keyed by its option index
    index: str # Digits captured from e.g. disk_3_size
    size_gb: int = 0 # 0 means "no disk requested at this index"
    thin_provisioned: bool = True
    dependent: bool = True
    persistent: bool = True
    bootable: bool = False

    @field_validator('index')
    @classmethod
    def check_index_digits(cls, v):
        if not v.isdigit():
            raise ValueError(f"Disk index must be a non-negative integer string, got '{v}'")
        return v

    @property
    def size_mb(self) -> int:
        return self.size_gb * MB_PER_GB

    def add_disk_flags(self, datastore_name: str) -> Dict[str, Any]:
        # Flags structure handed to the VM's add_disk operation
        return {
            "datastore": datastore_name,
            "thin_provisioned": self.thin_provisioned,
            "dependent": self.dependent,
            "persistent": self.persistent,
            "bootable": self.bootable,
        }


class DiskPlan(BaseModel):
    disks: List[DiskSpec] = Field(default_factory=list)

    @field_validator('disks')
    @classmethod
    def check_unique_sorted(cls, v):
        seen = set()
        for disk in v:
            if disk.index in seen:
                raise ValueError(f"Duplicate disk index in plan: {disk.index}")
            seen.add(disk.index)
        return sorted(v, key=lambda d: index_sort_key(d.index))

    def get(self, index: str) -> Optional[DiskSpec]:
        for disk in self.disks:
            if disk.index == index:
                return disk
        return None

    @property
    def requested(self) -> List[DiskSpec]:
        # Entries that will actually reach add_disk
        return [d for d in self.disks if d.size_gb > 0]


class ProvisioningTarget(BaseModel):
    vm: Any # VM reference exposing add_disk and an optional storage
    datastore_name: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)


class DiskOutcome(BaseModel):
    index: str
    status: DiskStatus
    size_mb: int = 0
    reason: Optional[str] = None # Set for skipped disks
