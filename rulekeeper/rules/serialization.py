"""
Structural dict conversion for intents, effects, resolutions and rolls.

Every top-level dict carries a "type" tag holding the class name. Enums
serialize by value, tuples as lists and nested records as plain dicts, so
the output survives json.dumps/json.loads unchanged.
"""

from dataclasses import fields, is_dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Union, get_args, get_origin, get_type_hints

from rulekeeper.dice.dice_roller import RollResult
from rulekeeper.rules.effects import Effect, all_effect_types
from rulekeeper.rules.intents import Intent, all_intent_types
from rulekeeper.rules.types import Resolution

TYPE_KEY = "type"


# =============================================================================
# ENCODING
# =============================================================================


def _encode(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (tuple, list)):
        return [_encode(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_encode(v) for v in value)
    if is_dataclass(value) and not isinstance(value, type):
        return _record_to_dict(value)
    return value


def _record_to_dict(record: Any) -> dict[str, Any]:
    return {f.name: _encode(getattr(record, f.name)) for f in fields(record)}


def _tagged(record: Any) -> dict[str, Any]:
    data = {TYPE_KEY: type(record).__name__}
    data.update(_record_to_dict(record))
    return data


# =============================================================================
# DECODING
# =============================================================================


@lru_cache(maxsize=None)
def _hints(cls: type) -> dict[str, Any]:
    return get_type_hints(cls)


def _decode(hint: Any, value: Any) -> Any:
    if value is None:
        return None

    origin = get_origin(hint)
    if origin is Union:
        # Optional[X]; records only ever use single-type optionals
        inner = [arg for arg in get_args(hint) if arg is not type(None)]
        return _decode(inner[0], value) if len(inner) == 1 else value
    if origin is tuple:
        args = get_args(hint)
        item_hint = args[0] if args else Any
        return tuple(_decode(item_hint, v) for v in value)
    if origin is list:
        args = get_args(hint)
        return [_decode(args[0] if args else Any, v) for v in value]

    if isinstance(hint, type):
        if issubclass(hint, Enum):
            return hint(value)
        if is_dataclass(hint):
            return _record_from_dict(hint, value)
        if hint is float:
            return float(value)
    return value


def _record_from_dict(cls: type, data: dict[str, Any]) -> Any:
    hints = _hints(cls)
    kwargs = {}
    for f in fields(cls):
        if f.name in data:
            kwargs[f.name] = _decode(hints[f.name], data[f.name])
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ValueError(f"Cannot build {cls.__name__} from {sorted(data)}: {e}") from e


def _from_tagged(data: dict[str, Any], registry: dict[str, type], family: str) -> Any:
    type_name = data.get(TYPE_KEY)
    if type_name is None:
        raise ValueError(f"{family} dict has no '{TYPE_KEY}' tag")
    cls = registry.get(type_name)
    if cls is None:
        raise ValueError(f"Unknown {family} type: {type_name}")
    body = {k: v for k, v in data.items() if k != TYPE_KEY}
    return _record_from_dict(cls, body)


@lru_cache(maxsize=1)
def _intent_registry() -> dict[str, type]:
    return {cls.__name__: cls for cls in all_intent_types()}


@lru_cache(maxsize=1)
def _effect_registry() -> dict[str, type]:
    return {cls.__name__: cls for cls in all_effect_types()}


# =============================================================================
# PUBLIC API
# =============================================================================


def intent_to_dict(intent: Intent) -> dict[str, Any]:
    return _tagged(intent)


def intent_from_dict(data: dict[str, Any]) -> Intent:
    """
    Rebuild an intent from its tagged dict.

    Raises:
        ValueError: If the tag is missing or unknown, or fields don't fit
    """
    return _from_tagged(data, _intent_registry(), "intent")


def effect_to_dict(effect: Effect) -> dict[str, Any]:
    return _tagged(effect)


def effect_from_dict(data: dict[str, Any]) -> Effect:
    """
    Rebuild an effect from its tagged dict.

    Raises:
        ValueError: If the tag is missing or unknown, or fields don't fit
    """
    return _from_tagged(data, _effect_registry(), "effect")


def roll_result_to_dict(result: RollResult) -> dict[str, Any]:
    return _tagged(result)


def roll_result_from_dict(data: dict[str, Any]) -> RollResult:
    body = {k: v for k, v in data.items() if k != TYPE_KEY}
    return _record_from_dict(RollResult, body)


def resolution_to_dict(resolution: Resolution) -> dict[str, Any]:
    return {
        TYPE_KEY: "Resolution",
        "narrative": resolution.narrative,
        "effects": [effect_to_dict(e) for e in resolution.effects],
    }


def resolution_from_dict(data: dict[str, Any]) -> Resolution:
    return Resolution(
        narrative=data.get("narrative", ""),
        effects=[effect_from_dict(e) for e in data.get("effects", [])],
    )


def intents_from_list(items: list[dict[str, Any]]) -> list[Intent]:
    """Decode a script: a JSON list of tagged intent dicts."""
    return [intent_from_dict(item) for item in items]
