import os
import re
import unittest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

_WORD_RE = re.compile(r"[0-9a-z]+")


def trigrams(value):
    grams = set()
    for word in _WORD_RE.findall(str(value or "").lower()):
        padded = f"  {word} "
        for idx in range(len(padded) - 2):
            grams.add(padded[idx: idx + 3])
    return grams


def trigram_similarity(left, right):
    """pg_trgm ``similarity()`` for SQLite test databases; NULL in, NULL out."""
    if left is None or right is None:
        return None
    a = trigrams(left)
    b = trigrams(right)
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def sqlite_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _register_similarity(dbapi_connection, _record):
        dbapi_connection.create_function("similarity", 2, trigram_similarity, deterministic=True)

    return engine


def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def postgres_url_or_skip():
    url = os.getenv("DATABASE_URL", "")
    if not url.startswith("postgresql"):
        raise unittest.SkipTest("Listing test requires PostgreSQL DATABASE_URL")
    return url
