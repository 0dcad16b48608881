"""Parsing and formatting of CSS filter function lists such as ``blur(20px) brightness(1.2)``."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Union

_FUNCTION_RE = re.compile(r"([a-zA-Z-]+)\(([^)]+)\)")
_NUMBER_UNIT_RE = re.compile(r"^(-?\d*\.?\d+)([a-z%]*)$")


@dataclass(frozen=True)
class FilterFunction:
    name: str
    value: Union[float, str]
    unit: Optional[str] = None

    def with_value(self, value: float) -> "FilterFunction":
        return replace(self, value=value)

    def to_css(self) -> str:
        value = self.value
        if isinstance(value, float):
            value = f"{value:.6g}"
        return f"{self.name}({value}{self.unit or ''})"


def parse_filter_list(text: Optional[str]) -> List[FilterFunction]:
    """
    Split a filter string into functions.

    Numeric arguments become floats with an optional unit; anything else is
    kept verbatim as a string.
    """
    result: List[FilterFunction] = []
    if not text:
        return result
    for match in _FUNCTION_RE.finditer(text):
        name = match.group(1)
        args = match.group(2).strip()
        number = _NUMBER_UNIT_RE.match(args)
        if number:
            result.append(FilterFunction(name, float(number.group(1)), number.group(2) or None))
        else:
            result.append(FilterFunction(name, args))
    return result


def format_filter_list(items: Iterable[FilterFunction]) -> str:
    return " ".join(item.to_css() for item in items)


def only(items: Iterable[FilterFunction], name: str) -> List[FilterFunction]:
    return [item for item in items if item.name == name]


def without(items: Iterable[FilterFunction], name: str) -> List[FilterFunction]:
    return [item for item in items if item.name != name]


def blur_amount(items: Iterable[FilterFunction]) -> float:
    """Total blur radius of the first numeric ``blur()`` entry, 0 when absent."""
    for item in only(items, "blur"):
        if isinstance(item.value, float):
            return item.value
    return 0.0
