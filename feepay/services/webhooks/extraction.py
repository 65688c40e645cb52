"""Alias-based field extraction from gateway notification payloads.

The gateway's payload shape has changed over time, so each logical field is
resolved from an ordered list of dotted paths. The first path holding a
value wins; `None` and `""` count as absent.
"""

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class FieldRule:
    field: str
    paths: tuple[str, ...]

    def resolve(self, payload: Mapping[str, Any]) -> Any:
        for path in self.paths:
            value = lookup_path(payload, path)
            if value is not None and value != "":
                return value
        return None


DEFAULT_FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule("order_id", ("order_info.order_id", "collect_id")),
    FieldRule("status", ("status", "payment_status")),
    FieldRule("transaction_amount", ("transaction_amount", "amount")),
    FieldRule("bank_reference", ("bank_reference", "transaction_id")),
    FieldRule("payment_mode", ("payment_mode", "payment_method")),
    FieldRule("payment_time", ("payment_time", "transaction_time")),
    FieldRule("payment_details", ("payment_details",)),
    FieldRule("payment_message", ("payment_message", "message")),
    FieldRule("error_message", ("error_message",)),
)


def lookup_path(payload: Mapping[str, Any], path: str) -> Any:
    """Follow a dotted path through nested mappings; None when any hop is missing."""

    current: Any = payload
    for key in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def build_rules(overrides: Mapping[str, list[str]] | None = None) -> tuple[FieldRule, ...]:
    """Merge configured alias paths into the defaults.

    Configured paths for a known field are tried after the built-in ones;
    unknown field names add new rules.
    """

    if not overrides:
        return DEFAULT_FIELD_RULES
    rules: list[FieldRule] = []
    seen: set[str] = set()
    for rule in DEFAULT_FIELD_RULES:
        extra = tuple(p for p in overrides.get(rule.field, []) if p not in rule.paths)
        rules.append(FieldRule(rule.field, rule.paths + extra))
        seen.add(rule.field)
    for field, paths in overrides.items():
        if field not in seen:
            rules.append(FieldRule(field, tuple(paths)))
    return tuple(rules)


def extract(payload: Mapping[str, Any], rules: tuple[FieldRule, ...] = DEFAULT_FIELD_RULES) -> dict[str, Any]:
    """Resolve every rule against the payload; absent fields map to None."""

    return {rule.field: rule.resolve(payload) for rule in rules}
