import logging
from typing import Any, Dict, Mapping

from diskprov.shared.models import DiskSpec, DiskPlan, DiskAttribute

logger = logging.getLogger(__name__)

# Applied when a disk does not set the attribute; bootable comes from configuration
DISK_DEFAULTS = {
    DiskAttribute.SIZE.value: 0,
    DiskAttribute.THIN_PROVISIONED.value: True,
    DiskAttribute.DEPENDENT.value: True,
    DiskAttribute.PERSISTENT.value: True,
}


def _flag(attributes: Mapping[str, Any], attribute: str, default: bool) -> bool:
    value = attributes.get(attribute)
    if value is None:
        return default
    return bool(value)


class DiskPlanBuilder:
    def build(self, partial_attributes: Mapping[str, Mapping[str, Any]], default_bootable: bool = False) -> DiskPlan:
        disks = []
        for index, attributes in partial_attributes.items():
            size_gb = attributes.get(DiskAttribute.SIZE.value)
            disk = DiskSpec(
                index=index,
                size_gb=DISK_DEFAULTS[DiskAttribute.SIZE.value] if size_gb is None else int(size_gb),
                thin_provisioned=_flag(attributes, DiskAttribute.THIN_PROVISIONED.value, DISK_DEFAULTS[DiskAttribute.THIN_PROVISIONED.value]),
                dependent=_flag(attributes, DiskAttribute.DEPENDENT.value, DISK_DEFAULTS[DiskAttribute.DEPENDENT.value]),
                persistent=_flag(attributes, DiskAttribute.PERSISTENT.value, DISK_DEFAULTS[DiskAttribute.PERSISTENT.value]),
                bootable=_flag(attributes, DiskAttribute.BOOTABLE.value, bool(default_bootable)),
            )
            logger.debug(f"{{ disk_num => {index}, disk_options => {dict(attributes)} }} -> {disk.model_dump()}")
            disks.append(disk)
        return DiskPlan(disks=disks)
