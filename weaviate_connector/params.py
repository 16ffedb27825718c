# weaviate_connector/params.py
# SPDX-License-Identifier: Apache-2.0
"""
Host-facing parameter access.

The workflow host is modelled by the :class:`ExecutionContext` protocol. It
hands out input items, node parameters (per item), the stored credential,
and the continue-on-fail flag. :class:`ItemParameters` wraps one item's view
with typed getters so translators never touch raw host values.

Collections may be picked "by name" or "from a list"; both shapes are parsed
into a :data:`CollectionLocator` and resolved to a plain name once, here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from weaviate_connector.errors import ValidationError
from weaviate_connector.formatting import (
    parse_json_param,
    split_csv,
    validate_required_fields,
)

_MISSING: Any = object()


class ExecutionContext(Protocol):
    """What the connector needs from the workflow host."""

    def get_input_items(self) -> Sequence[Mapping[str, Any]]: ...

    def get_node_parameter(self, name: str, item_index: int, default: Any = _MISSING) -> Any: ...

    def get_credentials(self, item_index: int) -> Mapping[str, Any]: ...

    def continue_on_fail(self) -> bool: ...


@dataclass
class StaticExecutionContext:
    """
    In-memory ExecutionContext.

    ``item_parameters[i]`` overrides ``parameters`` for item ``i``. Used by the
    CLI and by tests.
    """

    parameters: Mapping[str, Any] = field(default_factory=dict)
    items: Optional[Sequence[Mapping[str, Any]]] = None
    item_parameters: Sequence[Mapping[str, Any]] = field(default_factory=list)
    credentials: Mapping[str, Any] = field(default_factory=dict)
    fail_soft: bool = False

    def get_input_items(self) -> Sequence[Mapping[str, Any]]:
        if self.items is None:
            return [{}]
        return self.items

    def get_node_parameter(self, name: str, item_index: int, default: Any = _MISSING) -> Any:
        if item_index < len(self.item_parameters):
            overrides = self.item_parameters[item_index]
            if name in overrides:
                return overrides[name]
        if name in self.parameters:
            return self.parameters[name]
        if default is _MISSING:
            raise ValidationError(
                f'Could not get parameter "{name}"',
                details={"parameter": name, "item_index": item_index},
            )
        return default

    def get_credentials(self, item_index: int) -> Mapping[str, Any]:
        return self.credentials

    def continue_on_fail(self) -> bool:
        return self.fail_soft


# --------------------------------------------------------------------------- #
# Collection locator
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class ByName:
    value: str


@dataclass(frozen=True)
class FromList:
    value: str


CollectionLocator = Union[ByName, FromList]


def parse_locator(raw: Any) -> CollectionLocator:
    """
    Accept a plain string or a ``{"mode": "list"|"name", "value": ...}`` mapping.
    """
    if isinstance(raw, (ByName, FromList)):
        return raw
    if isinstance(raw, str):
        return ByName(raw)
    if isinstance(raw, Mapping):
        value = raw.get("value")
        if not isinstance(value, str):
            value = "" if value is None else str(value)
        if raw.get("mode") == "list":
            return FromList(value)
        return ByName(value)
    if raw is None:
        return ByName("")
    raise ValidationError(f"Invalid collection reference: {raw!r}")


def resolve_locator(locator: CollectionLocator, field_name: str = "collection") -> str:
    name = locator.value.strip()
    if not name:
        raise ValidationError(
            f'Required field "{field_name}" is missing or empty',
            details={"field": field_name},
        )
    return name


# --------------------------------------------------------------------------- #
# Typed per-item access
# --------------------------------------------------------------------------- #


class ItemParameters:
    """Typed getters over one item's node parameters."""

    def __init__(self, ctx: ExecutionContext, item_index: int) -> None:
        self._ctx = ctx
        self.item_index = item_index

    def raw(self, name: str, default: Any = _MISSING) -> Any:
        return self._ctx.get_node_parameter(name, self.item_index, default)

    def string(self, name: str, default: str = "", *, required: bool = False) -> str:
        value = self.raw(name, default)
        text = "" if value is None else str(value)
        if required:
            validate_required_fields({name: text}, [name])
        return text

    def number(self, name: str, default: Optional[float] = None) -> Optional[float]:
        return _coerce_number(self.raw(name, default), name)

    def integer(self, name: str, default: Optional[int] = None) -> Optional[int]:
        return _coerce_int(self.raw(name, default), name)

    def boolean(self, name: str, default: bool = False) -> bool:
        return _coerce_bool(self.raw(name, default), name)

    def json(self, name: str, default: Any = None, *, required: bool = False) -> Any:
        value = self.raw(name, default)
        if required:
            validate_required_fields({name: value}, [name])
        if isinstance(value, str) and not value.strip():
            return None
        return parse_json_param(value, name)

    def options(self, name: str = "additionalOptions") -> "OptionValues":
        """A collection of optional settings, empty when not supplied."""
        value = self.raw(name, {})
        if value is None:
            value = {}
        if not isinstance(value, Mapping):
            raise ValidationError(f'Field "{name}" must be an object', details={"field": name})
        return OptionValues(value)

    def collection(self, name: str = "collection") -> str:
        return resolve_locator(parse_locator(self.raw(name, "")), name)


class OptionValues:
    """Typed getters over a nested options mapping."""

    def __init__(self, values: Mapping[str, Any]) -> None:
        self._values = dict(values)

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def raw(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def string(self, key: str, default: str = "") -> str:
        value = self._values.get(key, default)
        return "" if value is None else str(value)

    def number(self, key: str, default: Optional[float] = None) -> Optional[float]:
        return _coerce_number(self._values.get(key, default), key)

    def integer(self, key: str, default: Optional[int] = None) -> Optional[int]:
        return _coerce_int(self._values.get(key, default), key)

    def boolean(self, key: str, default: bool = False) -> bool:
        return _coerce_bool(self._values.get(key, default), key)

    def json(self, key: str, default: Any = None) -> Any:
        value = self._values.get(key, default)
        if isinstance(value, str) and not value.strip():
            return None
        return parse_json_param(value, key)

    def csv(self, key: str) -> List[str]:
        return split_csv(self._values.get(key))


def _coerce_number(value: Any, name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f'Field "{name}" must be a number', details={"field": name})
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        raise ValidationError(f'Field "{name}" must be a number', details={"field": name}) from None


def _coerce_int(value: Any, name: str) -> Optional[int]:
    number = _coerce_number(value, name)
    if number is None:
        return None
    if number != int(number):
        raise ValidationError(f'Field "{name}" must be an integer', details={"field": name})
    return int(number)

def _coerce_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if value is None or value == "":
        return False
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    if isinstance(value, (int, float)):
        return bool(value)
    raise ValidationError(f'Field "{name}" must be a boolean', details={"field": name})


__all__ = [
    "ExecutionContext",
    "StaticExecutionContext",
    "ByName",
    "FromList",
    "CollectionLocator",
    "parse_locator",
    "resolve_locator",
    "ItemParameters",
    "OptionValues",
]
