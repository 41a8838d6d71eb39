from .enums import ParameterSource, RequestType, DiskAttribute, DiskStatus, OutcomeResult, BOOLEAN_DISK_ATTRIBUTES
from .storage import DiskSpec, DiskPlan, ProvisioningTarget, DiskOutcome, MB_PER_GB
from .compute import VmStorage, ProvisionRequest, RequestContext
from .outcome import Success, Retry, Fatal, Outcome, OutcomeEnvelope
