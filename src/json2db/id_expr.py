"""Identifier expressions: ``${field}`` templates rendered against a document."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping, Tuple, Union

from .errors import (FieldNotFoundError, MalformedExpressionError,
                     TypeMismatchError)

OPEN = "${"
CLOSE = "}"


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class FieldRef:
    name: str


Segment = Union[Literal, FieldRef]


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, float):
        return "float"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


@dataclass(frozen=True)
class IdExpression:
    """A compiled identifier template.

    ``segments`` alternates literal text and field references in source
    order. Rendering never re-scans substituted values.
    """

    source: str
    segments: Tuple[Segment, ...]

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(seg.name for seg in self.segments if isinstance(seg, FieldRef))

    def render(self, document: Any) -> str:
        if not self.fields:
            return "".join(seg.text for seg in self.segments)  # type: ignore[union-attr]
        if not isinstance(document, Mapping):
            raise TypeMismatchError(self.fields[0], self.source, _type_name(document))

        parts = []
        for seg in self.segments:
            if isinstance(seg, Literal):
                parts.append(seg.text)
                continue
            if seg.name not in document:
                raise FieldNotFoundError(seg.name, self.source)
            value = document[seg.name]
            if isinstance(value, str):
                parts.append(value)
            elif isinstance(value, int) and not isinstance(value, bool):
                parts.append(str(value))
            else:
                raise TypeMismatchError(seg.name, self.source, _type_name(value))
        return "".join(parts)


@lru_cache(maxsize=256)
def compile_expression(expr: str) -> IdExpression:
    """Split ``expr`` into literal and field segments with one forward scan."""
    segments = []
    pos = 0
    while True:
        start = expr.find(OPEN, pos)
        if start == -1:
            break
        end = expr.find(CLOSE, start + len(OPEN))
        if end == -1:
            raise MalformedExpressionError(
                f"Invalid id expression: missing closing '}}' in {expr}", expr
            )
        if start > pos:
            segments.append(Literal(expr[pos:start]))
        segments.append(FieldRef(expr[start + len(OPEN):end]))
        pos = end + len(CLOSE)
    if pos < len(expr):
        segments.append(Literal(expr[pos:]))
    return IdExpression(source=expr, segments=tuple(segments))


def evaluate(expr: str, document: Any) -> str:
    return compile_expression(expr).render(document)
