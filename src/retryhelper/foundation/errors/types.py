"""JSON type aliases shared by logging and error reporting."""

from __future__ import annotations

from typing import Any, Union

# Any for recursive slots
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]
