# src/apicrawl/models/json_value.py
from enum import Enum
from typing import Any


class JsonKind(str, Enum):
    """Closed set of shapes a decoded JSON value can take."""
    OBJECT = 'object'
    ARRAY = 'array'
    STRING = 'string'
    NUMBER = 'number'
    BOOL = 'bool'
    NULL = 'null'


def kind_of(value: Any) -> JsonKind:
    """
    Classify a value produced by ``json.loads``.

    ``bool`` is tested before numbers since it subclasses ``int``.

    Raises:
        TypeError: for values that json.loads never produces
    """
    if value is None:
        return JsonKind.NULL
    if isinstance(value, bool):
        return JsonKind.BOOL
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, dict):
        return JsonKind.OBJECT
    if isinstance(value, list):
        return JsonKind.ARRAY
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def is_container(value: Any) -> bool:
    return kind_of(value) in (JsonKind.OBJECT, JsonKind.ARRAY)
