from enum import Enum

import pytest

from diskprov.core.context import Context
from diskprov.core.parameters import ParameterResolver, PRIORITY
from diskprov.shared.models import ParameterSource


SCOPE_KWARGS = {
    ParameterSource.INPUTS: "inputs",
    ParameterSource.CURRENT: "current",
    ParameterSource.OBJECT: "obj",
    ParameterSource.ROOT: "root",
    ParameterSource.STATE: "state",
}


def _resolver(**scopes):
    return ParameterResolver(Context(**scopes))


class TestPriority:
    def test_priority_order_is_inputs_to_state(self):
        assert PRIORITY == (
            ParameterSource.INPUTS,
            ParameterSource.CURRENT,
            ParameterSource.OBJECT,
            ParameterSource.ROOT,
            ParameterSource.STATE,
        )

    @pytest.mark.parametrize("higher", range(5))
    def test_higher_scope_wins_over_every_lower_scope(self, higher):
        scopes = {}
        for position, source in enumerate(PRIORITY):
            if position >= higher:
                scopes[SCOPE_KWARGS[source]] = {"prefix": f"from-{source.value.lower()}"}
        resolver = _resolver(**scopes)
        assert resolver.resolve("prefix") == f"from-{PRIORITY[higher].value.lower()}"

    def test_falls_through_to_state(self):
        resolver = _resolver(state={"vm": "vm-from-state"})
        assert resolver.resolve("vm") == "vm-from-state"


class TestKeyForms:
    def test_symbol_form_key_resolves_like_string(self):
        assert _resolver(current={":vm": "vm-1"}).resolve("vm") == "vm-1"

    def test_lookup_with_symbol_form_name(self):
        assert _resolver(current={"vm": "vm-1"}).resolve(":vm") == "vm-1"

    def test_enum_and_bytes_keys(self):
        class Key(str, Enum):
            VM = "vm"

        assert _resolver(root={Key.VM: "vm-enum"}).resolve("vm") == "vm-enum"
        assert _resolver(root={b"vm": "vm-bytes"}).resolve("vm") == "vm-bytes"

    def test_keys_are_case_sensitive(self):
        assert _resolver(root={"VM": "upper"}).resolve("vm") is None


class TestEmptyValues:
    @pytest.mark.parametrize("empty", [None, "", [], {}])
    def test_empty_values_fall_through(self, empty):
        resolver = _resolver(inputs={"options": empty}, root={"options": {"a": 1}})
        assert resolver.resolve("options") == {"a": 1}

    def test_false_is_a_value(self):
        resolver = _resolver(inputs={"default_bootable": False}, root={"default_bootable": True})
        assert resolver.resolve("default_bootable") is False

    def test_zero_is_a_value(self):
        assert _resolver(obj={"size": 0}, root={"size": 5}).resolve("size") == 0

    def test_absent_returns_none(self):
        assert _resolver().resolve("missing") is None

    def test_resolve_first_uses_fallback_names(self):
        resolver = _resolver(root={"dialog_disk_option_prefix": "vol"})
        assert resolver.resolve_first("disk_option_prefix", "dialog_disk_option_prefix") == "vol"
        assert resolver.resolve_first("nope", default="disk") == "disk"
