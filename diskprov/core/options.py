import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from diskprov.shared.models import RequestType, RequestContext, ProvisioningTarget
from .context import Context, canonicalize_keys
from .errors import UnsupportedRequestType, MissingVm, MissingOptions, UnresolvedDatastore
from .parameters import ParameterResolver, is_empty

logger = logging.getLogger(__name__)

# Sub-bags merged onto the top level options, in overlay order (later wins)
OVERLAY_KEYS = ("ws_values", "dialog")


def build_request_context(context: Context) -> RequestContext:
    root = context.root
    request_type = root.get('vmdb_object_type')
    logger.info(f"vmdb_object_type => '{request_type}'.")
    return RequestContext(
        request_type=request_type,
        provision_request=root.get('miq_provision'),
        root_attributes=root.attributes,
    )


def overlay_options(base: Mapping) -> Dict[str, Any]:
    """Flatten ws_values and dialog sub-bags onto the base options so that
    every option can be searched for at the top level."""
    options = canonicalize_keys(base)
    # Sub-bags are taken from the base so one overlay cannot replace the next
    sub_bags = [options.get(key) for key in OVERLAY_KEYS]
    for sub_bag in sub_bags:
        if isinstance(sub_bag, Mapping):
            options.update(canonicalize_keys(sub_bag))
    return options


def decode_options(raw: Any) -> Optional[Mapping]:
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise MissingOptions(f"options could not be decoded: {e}")
    if not isinstance(raw, Mapping):
        raise MissingOptions(f"options must be a mapping, got {type(raw).__name__}")
    return raw


class OptionsNormalizer:
    """Gets the VM and one flat options bag for the current request type."""

    def __init__(self, resolver: ParameterResolver):
        self.resolver = resolver

    def build(self, request_context: RequestContext) -> Tuple[Any, Dict[str, Any]]:
        request_type = request_context.request_type
        if request_type == RequestType.PROVISION_REQUEST.value:
            provision_request = request_context.provision_request
            vm = request_context.vm
            base = getattr(provision_request, "options", None)
        elif request_type == RequestType.VM.value:
            vm = self.resolver.resolve('vm')
            base = request_context.root_attributes
        elif request_type == RequestType.AUTOMATION_TASK.value:
            vm = self.resolver.resolve('vm')
            base = decode_options(self.resolver.resolve('options'))
        else:
            raise UnsupportedRequestType(request_type)

        if vm is None:
            raise MissingVm()
        options = overlay_options(base) if base else {}
        if not options:
            raise MissingOptions()
        return vm, options

    def resolve_target(self, vm: Any, request_context: RequestContext) -> ProvisioningTarget:
        datastore_name = None
        storage = getattr(vm, "storage", None)
        if storage is not None:
            datastore_name = getattr(storage, "name", None)
            logger.info(f"Using datastore '{datastore_name}' the VM currently lives on.")
        elif request_context.provision_request is not None:
            datastore_name = dest_storage_name(getattr(request_context.provision_request, "options", None))
            logger.info(f"Using destination datastore '{datastore_name}' from the provisioning request.")

        if is_empty(datastore_name) or not isinstance(datastore_name, str):
            raise UnresolvedDatastore()
        return ProvisioningTarget(vm=vm, datastore_name=datastore_name)


def dest_storage_name(options: Optional[Mapping]) -> Optional[str]:
    # dest_storage is an (id, name) pair
    dest_storage = canonicalize_keys(options).get('dest_storage')
    if isinstance(dest_storage, (list, tuple)) and len(dest_storage) > 1:
        return dest_storage[1]
    return None
