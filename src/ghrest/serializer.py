"""JSON (de)serialization between API payloads and typed models."""
from __future__ import annotations

import dataclasses
import json
import types
from collections.abc import Mapping as AbcMapping, Sequence as AbcSequence
from datetime import date, datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple, Type, Union, get_args, get_origin, get_type_hints

# X | Y annotations are types.UnionType on Python 3.10+
_UNION_TYPES: Tuple[Any, ...] = (Union, getattr(types, "UnionType", Union))

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset, AbcSequence)


@lru_cache(maxsize=256)
def _field_specs(cls: type) -> Tuple[Tuple[str, str, Any], ...]:
    """(attribute, json key, annotation) for each init field of a dataclass."""
    hints = get_type_hints(cls)
    return tuple(
        (f.name, f.metadata.get('json', f.name), hints.get(f.name, Any))
        for f in dataclasses.fields(cls)
        if f.init
    )


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat() + 'Z'
    return value.isoformat()


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, timezone.utc)
    text = str(value)
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    return datetime.fromisoformat(text)


class SimpleJsonSerializer:
    """Convert between JSON text and dataclass models.

    - attribute names match JSON keys unless a field declares a ``json`` alias
    - ``None`` attributes are left out when serializing
    - enums travel by value; unknown values map to an ``UNKNOWN`` member
      when the enum defines one
    - datetimes are ISO 8601 strings (UTC written with a ``Z`` suffix)
    """

    def serialize(self, item: Any) -> str:
        return json.dumps(self.to_json_compatible(item), ensure_ascii=False)

    def deserialize(self, text: str, target_type: Any = None) -> Any:
        """Parse JSON text, converting it to ``target_type`` when given.

        Raises:
            ValueError: if the text is not valid JSON or does not fit the type
        """
        return self.convert(json.loads(text), target_type)

    def to_json_compatible(self, item: Any) -> Any:
        if isinstance(item, Enum):
            return item.value
        if item is None or isinstance(item, (str, int, float, bool)):
            return item
        if isinstance(item, datetime):
            return _format_datetime(item)
        if isinstance(item, date):
            return item.isoformat()
        if dataclasses.is_dataclass(item) and not isinstance(item, type):
            result: Dict[str, Any] = {}
            for f in dataclasses.fields(item):
                value = getattr(item, f.name)
                if value is None:
                    continue
                result[f.metadata.get('json', f.name)] = self.to_json_compatible(value)
            return result
        if isinstance(item, AbcMapping):
            return {str(key): self.to_json_compatible(value) for key, value in item.items()}
        if isinstance(item, (list, tuple, set, frozenset)):
            return [self.to_json_compatible(value) for value in item]
        raise TypeError(f"Object of type {type(item).__name__} is not JSON serializable")

    def convert(self, data: Any, target_type: Any = None) -> Any:
        """Convert already-parsed JSON data into ``target_type``."""
        if target_type is None or target_type is Any or data is None:
            return data

        origin = get_origin(target_type)
        if origin in _UNION_TYPES:
            candidates = [arg for arg in get_args(target_type) if arg is not type(None)]
            return self.convert(data, candidates[0]) if len(candidates) == 1 else data

        if origin in _SEQUENCE_ORIGINS or target_type in (list, tuple):
            if not isinstance(data, list):
                raise ValueError(f"Expected a JSON array, got {type(data).__name__}")
            args = get_args(target_type)
            item_type = args[0] if args else None
            items = [self.convert(value, item_type) for value in data]
            return tuple(items) if origin is tuple else items

        if origin in (dict, AbcMapping) or target_type is dict:
            if not isinstance(data, dict):
                raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
            args = get_args(target_type)
            value_type = args[1] if len(args) == 2 else None
            return {key: self.convert(value, value_type) for key, value in data.items()}

        if isinstance(target_type, type):
            if dataclasses.is_dataclass(target_type):
                return self._convert_dataclass(data, target_type)
            if issubclass(target_type, Enum):
                return self._convert_enum(data, target_type)
            if issubclass(target_type, datetime):
                return _parse_datetime(data)
            if target_type is float and isinstance(data, int):
                return float(data)
        return data

    def _convert_dataclass(self, data: Any, cls: Type[Any]) -> Any:
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object for {cls.__name__}, got {type(data).__name__}")
        kwargs = {
            name: self.convert(data[key], annotation)
            for name, key, annotation in _field_specs(cls)
            if key in data
        }
        return cls(**kwargs)

    @staticmethod
    def _convert_enum(data: Any, cls: Type[Enum]) -> Any:
        try:
            return cls(data)
        except ValueError:
            unknown: Optional[Enum] = cls.__members__.get('UNKNOWN')
            return unknown if unknown is not None else data
