import re
import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from diskprov.shared.models import DiskAttribute, BOOLEAN_DISK_ATTRIBUTES
from diskprov.shared.models.storage import index_sort_key

logger = logging.getLogger(__name__)

DIALOG_PREFIX = "dialog_"

# Spellings accepted in option keys for the canonical attribute names
ATTRIBUTE_ALIASES = {
    "thin_provision": DiskAttribute.THIN_PROVISIONED.value,
}

# Matched at the start of the text only, so "Yes" and "tomato" are true but "maybe" is not
TRUE_TEXT = re.compile(r"t|true|y|yes", re.IGNORECASE)
LEADING_INTEGER = re.compile(r"\s*([-+]?\d+)")

KNOWN_ATTRIBUTES = frozenset(a.value for a in DiskAttribute)


class DiskAttributeKey(BaseModel):
    disk_index: str
    attribute: str
    had_dialog_prefix: bool = False

    model_config = ConfigDict(frozen=True)


def disk_key_pattern(prefix: str):
    return re.compile(rf"^({DIALOG_PREFIX})?{re.escape(prefix)}_([0-9]+)_(.+)$")


def parse_disk_key(key: str, pattern) -> Optional[DiskAttributeKey]:
    match = pattern.match(key)
    if not match:
        return None
    attribute = ATTRIBUTE_ALIASES.get(match.group(3), match.group(3))
    return DiskAttributeKey(
        disk_index=match.group(2),
        attribute=attribute,
        had_dialog_prefix=match.group(1) is not None,
    )


def coerce_boolean(value: Any) -> Any:
    if isinstance(value, bytes):
        value = value.decode('utf-8')
    if isinstance(value, str):
        return TRUE_TEXT.match(value) is not None
    return value


def coerce_size(value: Any) -> int:
    # Sizes are gigabytes; text keeps its leading integer, anything unparseable is 0
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, bytes):
        value = value.decode('utf-8')
    match = LEADING_INTEGER.match(str(value))
    return int(match.group(1)) if match else 0


def coerce_attribute(attribute: str, value: Any) -> Any:
    if attribute == DiskAttribute.SIZE.value:
        return coerce_size(value)
    if attribute in BOOLEAN_DISK_ATTRIBUTES:
        return coerce_boolean(value)
    return value


class DiskSpecParser:
    def __init__(self, prefix: str = "disk"):
        self.prefix = prefix

    def parse(self, options: Mapping[str, Any], prefix: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
        """Group every ``(dialog_)?<prefix>_<N>_<attribute>`` option by disk index.

        Both spellings of a key write into the same per-disk accumulator.
        When both are set the ``dialog_`` form wins: bare keys are applied first.
        """
        pattern = disk_key_pattern(prefix or self.prefix)

        matches = []
        for key, value in options.items():
            parsed = parse_disk_key(str(key), pattern)
            if parsed is not None:
                matches.append((parsed, value))
        matches.sort(key=lambda m: m[0].had_dialog_prefix)

        disks: Dict[str, Dict[str, Any]] = {}
        for disk_key, raw_value in matches:
            attributes = disks.setdefault(disk_key.disk_index, {})
            if disk_key.attribute not in KNOWN_ATTRIBUTES:
                logger.debug(f"Ignoring unknown attribute '{disk_key.attribute}' for disk '{disk_key.disk_index}'")
                continue

            value = coerce_attribute(disk_key.attribute, raw_value)
            if disk_key.attribute in attributes and disk_key.had_dialog_prefix and attributes[disk_key.attribute] != value:
                logger.warning(
                    f"Disk '{disk_key.disk_index}' attribute '{disk_key.attribute}' set both with and without "
                    f"'{DIALOG_PREFIX}' prefix; using dialog value {value!r}"
                )
            attributes[disk_key.attribute] = value

        ordered = {index: disks[index] for index in sorted(disks, key=index_sort_key)}
        logger.info(f"new_disks => {ordered}")
        return ordered
