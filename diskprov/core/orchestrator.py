import logging
from typing import List, Optional

from diskprov.shared import config
from diskprov.shared.models import (
    DiskPlan, DiskOutcome, DiskStatus, ProvisioningTarget, Outcome, Success, Retry, Fatal,
)
from .context import Context
from .disk_parser import DiskSpecParser, coerce_boolean
from .errors import DiskProvisioningError, RetryRequested
from .options import OptionsNormalizer, build_request_context
from .parameters import ParameterResolver
from .plan_builder import DiskPlanBuilder

logger = logging.getLogger(__name__)


class DiskProvisioningOrchestrator:
    """Adds the disks of a plan to the target VM, one add_disk call per disk.

    There is no retry or rollback here: an add_disk failure propagates and
    the remaining disks are not attempted.
    """

    def apply(self, plan: DiskPlan, target: ProvisioningTarget) -> List[DiskOutcome]:
        outcomes = []
        vm_name = getattr(target.vm, "name", target.vm)
        for disk in plan.disks:
            logger.info(f"{{ disk_num => {disk.index}, size_gb => {disk.size_gb}, datastore => {target.datastore_name} }}")

            # don't add disks with a size of 0
            if disk.size_gb <= 0:
                if disk.size_gb < 0:
                    logger.warning(f"Skip disk '{disk.index}' with negative size {disk.size_gb}")
                    reason = "negative size"
                else:
                    logger.info(f"Skip disk '{disk.index}' with size of 0")
                    reason = "size is 0"
                outcomes.append(DiskOutcome(index=disk.index, status=DiskStatus.SKIPPED, reason=reason))
                continue

            logger.info(f"Add new disk of size '{disk.size_gb}'G to VM '{vm_name}'")
            target.vm.add_disk(
                None, # placeholder the VM API requires but does not use
                disk.size_mb,
                disk.add_disk_flags(target.datastore_name),
            )
            outcomes.append(DiskOutcome(index=disk.index, status=DiskStatus.CREATED, size_mb=disk.size_mb))
        return outcomes


def resolve_disk_option_prefix(resolver: ParameterResolver) -> str:
    return str(resolver.resolve_first('disk_option_prefix', 'dialog_disk_option_prefix', default=config.DISK_OPTION_PREFIX))


def resolve_default_bootable(resolver: ParameterResolver) -> bool:
    value = resolver.resolve('default_bootable')
    if value is None:
        return config.DEFAULT_BOOTABLE
    return bool(coerce_boolean(value))


def provision_disks(context: Context, orchestrator: Optional[DiskProvisioningOrchestrator] = None) -> Outcome:
    """Resolve the request, build the disk plan and add the disks to the VM.

    Precondition failures are reported as ``Fatal``, a collaborator asking for
    a replay as ``Retry``. Errors raised by ``add_disk`` itself are not caught.
    """
    orchestrator = orchestrator or DiskProvisioningOrchestrator()
    if config.DEBUG:
        context.dump_all()

    resolver = ParameterResolver(context)
    try:
        request_context = build_request_context(context)
        normalizer = OptionsNormalizer(resolver)
        vm, options = normalizer.build(request_context)
        target = normalizer.resolve_target(vm, request_context)

        prefix = resolve_disk_option_prefix(resolver)
        default_bootable = resolve_default_bootable(resolver)
        partials = DiskSpecParser(prefix).parse(options)
        plan = DiskPlanBuilder().build(partials, default_bootable=default_bootable)

        disks = orchestrator.apply(plan, target)
    except DiskProvisioningError as e:
        logger.error(f"{e}")
        return context.report(Fatal(message=str(e)))
    except RetryRequested as e:
        return context.report(Retry(delay_seconds=e.delay_seconds, reason=e.reason))

    return context.report(Success(disks=disks))
