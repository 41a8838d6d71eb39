import json
import logging
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from diskprov.shared.models import ParameterSource, Outcome, Success, Retry, Fatal, OutcomeResult

logger = logging.getLogger(__name__)


def canonical_key(key: Any) -> str:
    """Return the single string form used for a key everywhere inside the engine.

    Enum members collapse to their value, bytes are decoded, and the
    serialized symbol form (``":vm"``) is treated as the plain name (``"vm"``).
    Case is preserved: option keys are case-sensitive.
    """
    if isinstance(key, Enum):
        key = key.value
    if isinstance(key, bytes):
        key = key.decode('utf-8')
    key = str(key)
    if len(key) > 1 and key.startswith(':'):
        key = key[1:]
    return key


def canonicalize_keys(mapping: Optional[Mapping]) -> Dict[str, Any]:
    if not mapping:
        return {}
    return {canonical_key(k): v for k, v in mapping.items()}


class Scope:
    """One key-value lookup surface (inputs, current, object, root or state)."""

    def __init__(self, source: ParameterSource, attributes: Optional[Mapping] = None):
        self.source = source
        self._attributes = canonicalize_keys(attributes)

    def get(self, key: Any, default: Any = None) -> Any:
        return self._attributes.get(canonical_key(key), default)

    def __getitem__(self, key: Any) -> Any:
        return self._attributes[canonical_key(key)]

    def __setitem__(self, key: Any, value: Any):
        self._attributes[canonical_key(key)] = value

    def __contains__(self, key: Any) -> bool:
        return canonical_key(key) in self._attributes

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    def items(self) -> Iterable[Tuple[str, Any]]:
        return self._attributes.items()

    def __repr__(self):
        return f"Scope({self.source.value}, {len(self._attributes)} attributes)"


# --- Outcome channels ---

class LoggingOutcomeChannel:
    def report(self, outcome: Outcome):
        if isinstance(outcome, Success):
            logger.info(f"Disk provisioning finished: {outcome.created_count} disk(s) created.")
        elif isinstance(outcome, Retry):
            logger.info(f"Disk provisioning will be retried after {outcome.delay_seconds} seconds, because '{outcome.reason}'")
        else:
            logger.error(f"Disk provisioning failed: {outcome.message}")


class RootAttributesChannel:
    """Writes outcomes into the root scope the way the automation state machine reads them."""

    def __init__(self, root: Scope):
        self.root = root

    def report(self, outcome: Outcome):
        if isinstance(outcome, Success):
            self.root['ae_result'] = OutcomeResult.SUCCESS.value
        elif isinstance(outcome, Retry):
            self.root['ae_result'] = OutcomeResult.RETRY.value
            self.root['ae_retry_interval'] = outcome.retry_interval
            self.root['ae_reason'] = outcome.reason
        elif isinstance(outcome, Fatal):
            self.root['ae_result'] = OutcomeResult.FATAL.value
            self.root['ae_reason'] = outcome.message


class Context:
    """Everything one provisioning invocation may read: the five parameter
    scopes, in priority order, plus the channel outcomes are reported to."""

    def __init__(
        self,
        inputs: Optional[Mapping] = None,
        current: Optional[Mapping] = None,
        obj: Optional[Mapping] = None,
        root: Optional[Mapping] = None,
        state: Optional[Mapping] = None,
        outcome_channel=None,
    ):
        self.scopes: Dict[ParameterSource, Scope] = {
            ParameterSource.INPUTS: Scope(ParameterSource.INPUTS, inputs),
            ParameterSource.CURRENT: Scope(ParameterSource.CURRENT, current),
            ParameterSource.OBJECT: Scope(ParameterSource.OBJECT, obj),
            ParameterSource.ROOT: Scope(ParameterSource.ROOT, root),
            ParameterSource.STATE: Scope(ParameterSource.STATE, state),
        }
        self.outcome_channel = outcome_channel or LoggingOutcomeChannel()

    def scope(self, source: ParameterSource) -> Scope:
        return self.scopes[source]

    @property
    def root(self) -> Scope:
        return self.scopes[ParameterSource.ROOT]

    @property
    def state(self) -> Scope:
        return self.scopes[ParameterSource.STATE]

    def report(self, outcome: Outcome) -> Outcome:
        self.outcome_channel.report(outcome)
        return outcome

    # State variables holding structured values are stored JSON-encoded
    def set_complex_state(self, name: str, value: Any):
        self.state[name] = json.dumps(value)

    def get_complex_state(self, name: str) -> Any:
        raw = self.state.get(name)
        if raw is None:
            return None
        return json.loads(raw)

    def dump_scope(self, source: ParameterSource):
        scope = self.scope(source)
        logger.info(f"Begin {source.value.lower()} attributes")
        for key, value in sorted(scope.items()):
            logger.info(f"\t Attribute: {key} = {value!r}")
        logger.info(f"End {source.value.lower()} attributes")

    def dump_all(self):
        for source in (ParameterSource.ROOT, ParameterSource.OBJECT, ParameterSource.CURRENT):
            self.dump_scope(source)
