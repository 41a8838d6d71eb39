from .context import Context, Scope, LoggingOutcomeChannel, RootAttributesChannel, canonical_key
from .errors import (
    DiskProvisioningError, UnsupportedRequestType, MissingVm, MissingOptions, UnresolvedDatastore, RetryRequested,
)
from .parameters import ParameterResolver
from .options import OptionsNormalizer, build_request_context
from .disk_parser import DiskSpecParser
from .plan_builder import DiskPlanBuilder
from .orchestrator import DiskProvisioningOrchestrator, provision_disks
