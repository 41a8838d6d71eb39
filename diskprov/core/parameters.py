import logging
from typing import Any, Optional

from diskprov.shared import config
from diskprov.shared.models import ParameterSource
from .context import Context

logger = logging.getLogger(__name__)

# Scopes are searched in enum declaration order
PRIORITY = tuple(ParameterSource)


def is_empty(value: Any) -> bool:
    # False and 0 are real values; only nothing, blank text and empty containers are skipped
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


class ParameterResolver:
    """There are many ways to pass parameters to a provisioning method.
    This checks all of them in priority order: inputs, current, object, root, state.
    """

    def __init__(self, context: Context):
        self.context = context

    def resolve(self, name: Any) -> Optional[Any]:
        for source in PRIORITY:
            value = self.context.scope(source).get(name)
            if not is_empty(value):
                if config.DEBUG:
                    logger.debug(f"{{ '{name}' => '{value}' }} resolved from {source.value.lower()}")
                return value
        if config.DEBUG:
            logger.debug(f"{{ '{name}' => None }} not set in any scope")
        return None

    def resolve_first(self, *names: Any, default: Any = None) -> Any:
        # First name that resolves wins; used for options with legacy spellings
        for name in names:
            value = self.resolve(name)
            if value is not None:
                return value
        return default
