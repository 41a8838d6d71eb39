from enum import Enum

class ParameterSource(str, Enum):
    # Declaration order is lookup priority, highest first
    INPUTS = "INPUTS"
    CURRENT = "CURRENT"
    OBJECT = "OBJECT"
    ROOT = "ROOT"
    STATE = "STATE"

class RequestType(str, Enum):
    # Values are the automation engine's vmdb_object_type discriminants
    PROVISION_REQUEST = "miq_provision"
    VM = "vm"
    AUTOMATION_TASK = "automation_task"

class DiskAttribute(str, Enum):
    SIZE = "size"
    THIN_PROVISIONED = "thin_provisioned"
    DEPENDENT = "dependent"
    PERSISTENT = "persistent"
    BOOTABLE = "bootable"

# Attribute names coerced with the text-to-boolean rule
BOOLEAN_DISK_ATTRIBUTES = frozenset({
    DiskAttribute.THIN_PROVISIONED.value,
    DiskAttribute.DEPENDENT.value,
    DiskAttribute.PERSISTENT.value,
    DiskAttribute.BOOTABLE.value,
})

class DiskStatus(str, Enum):
    CREATED = "CREATED"
    SKIPPED = "SKIPPED"

class OutcomeResult(str, Enum):
    # Mirrors the automation engine's ae_result values
    SUCCESS = "ok"
    RETRY = "retry"
    FATAL = "error"
