import unittest

from app.schemas.page_request import PageRequest
from app.services.query.identifiers import is_safe_identifier
from app.services.query.pagination import PaginationConfig, resolve_sort_expression
from app.services.query.sorting import (
    build_natural_sort_expression,
    build_sort_expression_for_export,
    make_sort_mapping,
    normalize_sort_key,
    sanitize_sort_column,
    sanitize_sort_order,
)


class SortSanitizerTests(unittest.TestCase):
    def test_sort_order_is_always_asc_or_desc(self):
        self.assertEqual(sanitize_sort_order("asc"), "ASC")
        self.assertEqual(sanitize_sort_order(" Desc "), "DESC")
        for raw in ("", None, "ascending", "ASC; DROP TABLE x", "1"):
            self.assertEqual(sanitize_sort_order(raw), "DESC")

    def test_sort_column_must_be_allowed(self):
        allowed = ["id", "name", "created_at"]
        self.assertEqual(sanitize_sort_column("Name", allowed, "p."), "p.name")
        self.assertEqual(sanitize_sort_column("id", allowed), "id")
        self.assertEqual(sanitize_sort_column("password", allowed, "p."), "")
        self.assertEqual(sanitize_sort_column("", allowed, "p."), "")

    def test_normalize_sort_key(self):
        self.assertEqual(normalize_sort_key("  Expedition Name "), "expedition_name")
        self.assertEqual(normalize_sort_key("telp-number"), "telp_number")
        self.assertEqual(normalize_sort_key(None), "")

    def test_sort_mapping_unknown_key_is_empty(self):
        mapping = make_sort_mapping({"expedition_name": "e.expedition_name"})
        self.assertEqual(mapping("Expedition-Name"), "e.expedition_name")
        self.assertEqual(mapping("unknown"), "")
        self.assertEqual(mapping(""), "")


class NaturalSortExpressionTests(unittest.TestCase):
    def test_plain_column(self):
        self.assertEqual(build_natural_sort_expression("p.name", "asc", False), "p.name ASC")

    def test_unsafe_column_falls_back_to_created_at(self):
        self.assertEqual(build_natural_sort_expression("name; DROP", "asc", True), "created_at ASC")

    def test_natural_expression_has_three_keys(self):
        expression = build_natural_sort_expression("t.name", "desc", True)
        self.assertTrue(expression.startswith("TRIM(SUBSTRING(t.name FROM '^([^0-9]*)')) DESC, "))
        self.assertIn("regexp_match(t.name, '[0-9]+')", expression)
        self.assertIn("::bigint END) DESC NULLS LAST", expression)
        self.assertTrue(expression.endswith(", t.name DESC"))


class ResolveSortExpressionTests(unittest.TestCase):
    def test_unknown_column_falls_back_to_created_at(self):
        request = PageRequest(sort_by="DROP TABLE users", sort_order="desc")
        config = PaginationConfig(default_sort_by="", allowed_columns=())
        self.assertEqual(resolve_sort_expression(request, config), "created_at DESC")

    def test_default_sort_applies_without_request_values(self):
        config = PaginationConfig(default_sort_by="p.created_at", default_sort_order="ASC")
        self.assertEqual(resolve_sort_expression(PageRequest(), config), "p.created_at ASC")

    def test_allowed_columns_with_prefix(self):
        config = PaginationConfig(default_sort_by="p.created_at", allowed_columns=("name",), column_prefix="p.")
        request = PageRequest(sort_by="name", sort_order="asc")
        self.assertEqual(resolve_sort_expression(request, config), "p.name ASC")

    def test_mapping_wins_over_allowed_columns(self):
        config = PaginationConfig(
            default_sort_by="e.created_at",
            allowed_columns=("expedition_name",),
            column_prefix="x.",
            sort_mapping=make_sort_mapping({"expedition_name": "e.expedition_name"}),
        )
        request = PageRequest(sort_by="expedition_name", sort_order="asc")
        self.assertEqual(resolve_sort_expression(request, config), "e.expedition_name ASC")

    def test_explicit_mapping_overrides_config(self):
        config = PaginationConfig(
            default_sort_by="e.created_at", sort_mapping=make_sort_mapping({"name": "e.expedition_name"})
        )
        request = PageRequest(sort_by="name", sort_order="asc")
        override = make_sort_mapping({"name": "e.address"})
        self.assertEqual(resolve_sort_expression(request, config, override), "e.address ASC")

    def test_bad_order_uses_desc(self):
        config = PaginationConfig(default_sort_by="t.created_at", default_sort_order="ASC")
        request = PageRequest(sort_order="sideways")
        self.assertEqual(resolve_sort_expression(request, config), "t.created_at DESC")

    def test_natural_column_gets_natural_expression(self):
        config = PaginationConfig(
            default_sort_by="t.created_at",
            allowed_columns=("name",),
            column_prefix="t.",
            natural_sort_columns=frozenset({"t.name"}),
        )
        expression = resolve_sort_expression(PageRequest(sort_by="name", sort_order="asc"), config)
        self.assertTrue(expression.startswith("TRIM(SUBSTRING(t.name"))

    def test_resolved_column_is_always_safe(self):
        config = PaginationConfig(default_sort_by="t.created_at", allowed_columns=("name", "id"), column_prefix="t.")
        for raw in ("name", "id", "1; DELETE", "(select 1)", "", "name desc"):
            expression = resolve_sort_expression(PageRequest(sort_by=raw, sort_order="asc"), config)
            column, order = expression.rsplit(" ", 1)
            self.assertTrue(is_safe_identifier(column), expression)
            self.assertIn(order, {"ASC", "DESC"})


class ExportSortExpressionTests(unittest.TestCase):
    def setUp(self):
        self.mapping = make_sort_mapping({"name": "t.name", "code": "t.code"})

    def test_mapped_column(self):
        self.assertEqual(
            build_sort_expression_for_export("code", "asc", "t.created_at", "DESC", self.mapping),
            "t.code ASC",
        )

    def test_unknown_column_keeps_default(self):
        self.assertEqual(
            build_sort_expression_for_export("secret", "", "t.created_at", "ASC", self.mapping),
            "t.created_at ASC",
        )

    def test_without_mapping_keeps_default(self):
        self.assertEqual(
            build_sort_expression_for_export("name", "asc", "t.created_at", "DESC"),
            "t.created_at ASC",
        )

    def test_natural_column(self):
        expression = build_sort_expression_for_export(
            "name", "asc", "t.created_at", "DESC", self.mapping, natural_sort_columns=("t.name",)
        )
        self.assertTrue(expression.startswith("TRIM(SUBSTRING(t.name"))

    def test_invalid_order_is_desc(self):
        self.assertEqual(
            build_sort_expression_for_export("name", "up", "t.created_at", "ASC", self.mapping),
            "t.name DESC",
        )
