import os
import unittest
from datetime import datetime, timedelta, timezone

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import DeclarativeBase, Mapped, aliased, mapped_column

from app.schemas.page_request import PageRequest
from app.services.query.pagination import PaginationConfig, apply_pagination
from app.services.query.search import (
    SearchDescriptor,
    apply_search_condition,
    build_search_condition,
    resolve_similarity_threshold,
    rewrite_exists_template,
    search_tokens,
    similarity_sql,
)
from tests.support import session_factory, sqlite_engine


class _Base(DeclarativeBase):
    pass


class _SearchRow(_Base):
    __tablename__ = "search_rows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    code: Mapped[str] = mapped_column(String(20), default="")
    note: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


CONTACT_TEMPLATE = "EXISTS (SELECT 1 FROM contacts c WHERE c.row_id = t.id AND c.phone ILIKE ?)"


def _pg(clause):
    return clause.compile(dialect=postgresql.dialect())


class SearchTokenTests(unittest.TestCase):
    def test_two_words_give_three_tokens(self):
        self.assertEqual(search_tokens("blue shark"), ["blue", "shark", "blueshark"])

    def test_extra_whitespace_is_ignored(self):
        self.assertEqual(search_tokens("  blue   shark "), ["blue", "shark", "blueshark"])

    def test_blank_search_has_no_tokens(self):
        self.assertEqual(search_tokens(""), [])
        self.assertEqual(search_tokens("   "), [])
        self.assertEqual(search_tokens(None), [])


class SimilarityThresholdTests(unittest.TestCase):
    def test_explicit_threshold_wins(self):
        searcher = SearchDescriptor(columns=("t.name",), threshold=0.75)
        self.assertEqual(resolve_similarity_threshold(searcher, 0.2), 0.2)

    def test_descriptor_threshold_then_default(self):
        self.assertEqual(resolve_similarity_threshold(SearchDescriptor(threshold=0.75)), 0.75)
        self.assertAlmostEqual(resolve_similarity_threshold(SearchDescriptor()), 0.30)
        self.assertAlmostEqual(resolve_similarity_threshold(None), 0.30)

    def test_threshold_out_of_range_is_rejected(self):
        with self.assertRaises(ValueError):
            SearchDescriptor(threshold=1.5)
        with self.assertRaises(ValueError):
            SearchDescriptor(threshold=-0.1)

    def test_similarity_sql_renders_two_decimals(self):
        self.assertEqual(
            similarity_sql("t.name", "$1", 0.4),
            "SIMILARITY(LOWER(REPLACE(t.name, ' ', '')), $1) >= 0.40",
        )


class ExistsTemplateTests(unittest.TestCase):
    def test_plain_marker_is_rewritten(self):
        self.assertEqual(
            rewrite_exists_template(CONTACT_TEMPLATE, 0.5),
            "EXISTS (SELECT 1 FROM contacts c WHERE c.row_id = t.id AND "
            "SIMILARITY(LOWER(REPLACE(c.phone, ' ', '')), :search_term) >= 0.50)",
        )

    def test_replace_wrapped_marker_is_rewritten(self):
        template = "EXISTS (SELECT 1 FROM contacts c WHERE REPLACE(c.phone, ' ', '') ILIKE ?)"
        self.assertEqual(
            rewrite_exists_template(template, 0.3),
            "EXISTS (SELECT 1 FROM contacts c WHERE SIMILARITY(LOWER(REPLACE(c.phone, ' ', '')), :search_term) >= 0.30)",
        )

    def test_template_without_single_marker_is_skipped(self):
        self.assertIsNone(rewrite_exists_template("EXISTS (SELECT 1 FROM contacts c)", 0.3))
        self.assertIsNone(
            rewrite_exists_template("EXISTS (SELECT 1 FROM c WHERE c.a ILIKE ? OR c.b ILIKE ?)", 0.3)
        )


class BuildSearchConditionTests(unittest.TestCase):
    def test_empty_inputs_produce_no_condition(self):
        searcher = SearchDescriptor(columns=("t.name",))
        self.assertIsNone(build_search_condition("", searcher))
        self.assertIsNone(build_search_condition("   ", searcher))
        self.assertIsNone(build_search_condition("blue", None))
        self.assertIsNone(build_search_condition("blue", SearchDescriptor()))

    def test_compiled_condition_shape(self):
        searcher = SearchDescriptor(columns=("t.name",), threshold=0.4)
        condition = build_search_condition("blue", searcher)
        sql = str(_pg(condition.where))
        self.assertIn("similarity(lower(replace(t.name, ' ', ''))", sql)
        self.assertIn(">= 0.40", sql)
        self.assertIn("lower(t.name) ILIKE", sql)
        self.assertIn("similarity(", str(_pg(condition.relevance)))
        self.assertIn("DESC", str(_pg(condition.relevance)))

    def test_parameter_count_matches_tokens_columns_and_templates(self):
        searcher = SearchDescriptor(columns=("t.name", "t.code"), exists_subqueries=(CONTACT_TEMPLATE,))
        condition = build_search_condition("blue shark", searcher)
        # 3 tokens x (2 similarity + 2 substring + 1 exists)
        self.assertEqual(len(_pg(condition.where).params), 15)
        # 3 tokens x 2 columns
        self.assertEqual(len(_pg(condition.relevance).params), 6)

    def test_relevance_terms_default_to_zero(self):
        condition = build_search_condition("blue", SearchDescriptor(columns=("t.name", "t.code")))
        sql = str(_pg(condition.relevance))
        self.assertEqual(sql.count("coalesce(similarity("), 2)
        self.assertEqual(len(_pg(condition.relevance).params), 2)

    def test_values_are_bound_not_inlined(self):
        searcher = SearchDescriptor(columns=("t.name",), exists_subqueries=(CONTACT_TEMPLATE,))
        condition = build_search_condition("x' OR 1=1 --", searcher)
        compiled = _pg(condition.where)
        self.assertNotIn("1=1", str(compiled))
        self.assertIn("%x'%", compiled.params.values())
        self.assertIn("x'", compiled.params.values())

    def test_unsafe_columns_are_dropped(self):
        searcher = SearchDescriptor(columns=("t.name", "t.name); DROP TABLE t; --"))
        condition = build_search_condition("blue", searcher)
        sql = str(_pg(condition.where))
        self.assertNotIn("DROP", sql)
        # 2 tokens ("blue" and its squashed copy) x (1 similarity + 1 substring)
        self.assertEqual(len(_pg(condition.where).params), 4)

    def test_only_unsafe_columns_produce_no_condition(self):
        self.assertIsNone(build_search_condition("blue", SearchDescriptor(columns=("bad name",))))

    def test_exists_only_descriptor_has_no_relevance(self):
        condition = build_search_condition("0812", SearchDescriptor(exists_subqueries=(CONTACT_TEMPLATE,)))
        self.assertIsNotNone(condition)
        self.assertIsNone(condition.relevance)
        self.assertIn("EXISTS", str(_pg(condition.where)))


class SearchListingTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = sqlite_engine()
        cls.SessionLocal = session_factory(cls.engine)
        _SearchRow.__table__.create(bind=cls.engine)
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        with cls.SessionLocal() as db:
            for idx, name in enumerate(["Blue Whale", "Whale Shark", "Blue Shark", "Carp"], start=1):
                note = None if name == "Blue Shark" else "pond"
                db.add(_SearchRow(id=idx, name=name, code=f"R{idx}", note=note, created_at=base + timedelta(days=idx)))
            db.commit()

    @classmethod
    def tearDownClass(cls):
        _SearchRow.__table__.drop(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self):
        self.db = self.SessionLocal()
        self.table = aliased(_SearchRow, name="t")
        self.config = PaginationConfig(default_sort_by="t.created_at", default_sort_order="DESC")

    def tearDown(self):
        self.db.close()

    def test_empty_search_returns_query_unchanged(self):
        query = self.db.query(self.table)
        self.assertIs(apply_search_condition(query, "", SearchDescriptor(columns=("t.name",))), query)

    def test_two_token_search_recall_and_relevance(self):
        rows, total = apply_pagination(
            self.db.query(self.table),
            PageRequest(page=1, per_page=10, search="blue shark"),
            self.config,
            searcher=SearchDescriptor(columns=("t.name",), threshold=0.40),
        )
        self.assertEqual(total, 3)
        self.assertEqual({row.id for row in rows}, {1, 2, 3})
        self.assertEqual(rows[0].id, 3)

    def test_substring_match_admits_rows_below_threshold(self):
        rows, total = apply_pagination(
            self.db.query(self.table),
            PageRequest(page=1, per_page=10, search="arp"),
            self.config,
            searcher=SearchDescriptor(columns=("t.name",), threshold=0.99),
        )
        self.assertEqual(total, 1)
        self.assertEqual(rows[0].name, "Carp")

    def test_null_column_does_not_sink_relevance(self):
        rows, total = apply_pagination(
            self.db.query(self.table),
            PageRequest(page=1, per_page=10, search="blue shark"),
            self.config,
            searcher=SearchDescriptor(columns=("t.name", "t.note"), threshold=0.40),
        )
        self.assertEqual(total, 3)
        self.assertEqual(rows[0].id, 3)
