"""
GA4 ``dimensionFilter`` expressions as a small tagged variant.

Variants
--------
FieldFilter    : match one dimension — either a string match (EXACT,
                 CONTAINS, ...) or an in-list match.
NotExpression  : negate one expression.
AndGroup       : all sub-expressions must match.

Each variant renders itself with ``to_dict()`` into the JSON shape the Data
API expects, e.g.::

    {"andGroup": {"expressions": [
        {"filter": {"fieldName": "hostName",
                    "inListFilter": {"values": ["example.com"], "caseSensitive": false}}},
        {"filter": {"fieldName": "pagePath",
                    "stringFilter": {"matchType": "CONTAINS", "value": "/blog",
                                     "caseSensitive": false}}}
    ]}}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional, Sequence, Union
from urllib.parse import urlsplit

MatchType = Literal[
    "EXACT", "BEGINS_WITH", "ENDS_WITH", "CONTAINS", "FULL_REGEXP", "PARTIAL_REGEXP",
]


@dataclass(frozen=True)
class FieldFilter:
    """Match a single dimension by string value or by membership in a list.

    Exactly one of ``value`` or ``values`` must be set.
    """

    field_name:     str
    value:          Optional[str] = None
    values:         Optional[tuple[str, ...]] = None
    match_type:     MatchType = "EXACT"
    case_sensitive: Optional[bool] = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.values is None):
            raise ValueError(
                f"FieldFilter({self.field_name!r}) needs exactly one of value or values."
            )
        if self.values is not None and not self.values:
            raise ValueError(f"FieldFilter({self.field_name!r}) values must not be empty.")

    def to_dict(self) -> dict[str, Any]:
        if self.values is not None:
            body: dict[str, Any] = {"values": list(self.values)}
            key = "inListFilter"
        else:
            body = {"matchType": self.match_type, "value": self.value}
            key = "stringFilter"
        if self.case_sensitive is not None:
            body["caseSensitive"] = self.case_sensitive
        return {"filter": {"fieldName": self.field_name, key: body}}


@dataclass(frozen=True)
class NotExpression:
    """Negation of one expression."""

    expression: "FilterExpression"

    def to_dict(self) -> dict[str, Any]:
        return {"notExpression": self.expression.to_dict()}


@dataclass(frozen=True)
class AndGroup:
    """Conjunction of two or more expressions."""

    expressions: tuple["FilterExpression", ...]

    def to_dict(self) -> dict[str, Any]:
        return {"andGroup": {"expressions": [e.to_dict() for e in self.expressions]}}


FilterExpression = Union[FieldFilter, NotExpression, AndGroup]


def combine_and(expressions: Sequence[FilterExpression]) -> Optional[FilterExpression]:
    """Collapse a list into ``None``, the single expression, or an ``AndGroup``."""
    if not expressions:
        return None
    if len(expressions) == 1:
        return expressions[0]
    return AndGroup(tuple(expressions))


def normalize_domain_input(text: str) -> list[str]:
    """Accept a domain or full URL and return tolerant host variants.

    ``"example.com"``              → ``["example.com", "www.example.com"]``
    ``"https://www.example.com/"`` → ``["www.example.com", "example.com"]``
    """
    text = (text or "").strip()
    if not text:
        return []
    host = urlsplit(text if "://" in text else f"https://{text}").hostname or text
    host = host.strip().lower()
    if not host:
        return []
    alt = host[4:] if host.startswith("www.") else f"www.{host}"
    return [host, alt] if alt else [host]


def host_filter(domain: str) -> Optional[FieldFilter]:
    """``hostName`` in-list filter for a domain, or ``None`` if no domain given."""
    hosts = normalize_domain_input(domain)
    if not hosts:
        return None
    return FieldFilter("hostName", values=tuple(hosts), case_sensitive=False)


def page_path_filter(path_contains: str) -> FieldFilter:
    """``pagePath`` filter: EXACT for the homepage ``/``, CONTAINS otherwise."""
    return FieldFilter(
        "pagePath",
        value=path_contains,
        match_type="EXACT" if path_contains == "/" else "CONTAINS",
        case_sensitive=False,
    )


def exclude_localhost() -> NotExpression:
    """Drop dev/test hits recorded under ``hostName == localhost``."""
    return NotExpression(FieldFilter("hostName", value="localhost", match_type="EXACT"))
