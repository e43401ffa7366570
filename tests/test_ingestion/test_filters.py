"""
Tests for ga4_timing/ingestion/filters.py.

What we test
------------
  - FieldFilter renders stringFilter / inListFilter; requires exactly one
    of value / values.
  - NotExpression and AndGroup nest correctly.
  - combine_and() collapses 0 / 1 / many expressions.
  - normalize_domain_input() tolerates URLs, case and the www prefix.
  - host_filter(), page_path_filter(), exclude_localhost() shapes.
"""

from __future__ import annotations

import pytest

from ga4_timing.ingestion.filters import (
    AndGroup,
    FieldFilter,
    NotExpression,
    combine_and,
    exclude_localhost,
    host_filter,
    normalize_domain_input,
    page_path_filter,
)


class TestFieldFilter:
    def test_string_filter(self):
        f = FieldFilter("defaultChannelGroup", value="Organic Social")
        assert f.to_dict() == {
            "filter": {
                "fieldName": "defaultChannelGroup",
                "stringFilter": {"matchType": "EXACT", "value": "Organic Social"},
            }
        }

    def test_in_list_filter_case_insensitive(self):
        f = FieldFilter("sessionSource", values=("linkedin", "t.co"), case_sensitive=False)
        assert f.to_dict() == {
            "filter": {
                "fieldName": "sessionSource",
                "inListFilter": {"values": ["linkedin", "t.co"], "caseSensitive": False},
            }
        }

    def test_requires_exactly_one_of_value_or_values(self):
        with pytest.raises(ValueError, match="exactly one of value or values"):
            FieldFilter("pagePath")
        with pytest.raises(ValueError, match="exactly one of value or values"):
            FieldFilter("pagePath", value="/", values=("/",))

    def test_empty_values_rejected(self):
        with pytest.raises(ValueError, match="must not be empty"):
            FieldFilter("sessionSource", values=())


class TestComposites:
    def test_not_expression(self):
        assert exclude_localhost().to_dict() == {
            "notExpression": {
                "filter": {
                    "fieldName": "hostName",
                    "stringFilter": {"matchType": "EXACT", "value": "localhost"},
                }
            }
        }

    def test_and_group(self):
        group = AndGroup((page_path_filter("/blog"), NotExpression(page_path_filter("/"))))
        rendered = group.to_dict()["andGroup"]["expressions"]
        assert len(rendered) == 2
        assert rendered[1]["notExpression"]["filter"]["fieldName"] == "pagePath"

    def test_combine_and(self):
        a, b = page_path_filter("/blog"), exclude_localhost()
        assert combine_and([]) is None
        assert combine_and([a]) is a
        assert combine_and([a, b]) == AndGroup((a, b))


class TestDomainHelpers:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("example.com", ["example.com", "www.example.com"]),
            ("https://www.Example.com/blog?x=1", ["www.example.com", "example.com"]),
            ("  shop.example.com ", ["shop.example.com", "www.shop.example.com"]),
            ("", []),
            ("   ", []),
        ],
    )
    def test_normalize_domain_input(self, text, expected):
        assert normalize_domain_input(text) == expected

    def test_host_filter(self):
        assert host_filter("example.com").to_dict()["filter"]["inListFilter"] == {
            "values": ["example.com", "www.example.com"],
            "caseSensitive": False,
        }
        assert host_filter("") is None

    def test_page_path_filter_homepage_is_exact(self):
        assert page_path_filter("/").to_dict()["filter"]["stringFilter"]["matchType"] == "EXACT"
        string_filter = page_path_filter("/blog").to_dict()["filter"]["stringFilter"]
        assert string_filter == {"matchType": "CONTAINS", "value": "/blog", "caseSensitive": False}
