"""Pytest configuration and shared fixtures."""

import os
from pathlib import Path

import psycopg
import pytest
from psycopg import Connection

from pg_fixtures import Config, MemoryStore
from pg_fixtures.models import ColumnInfo, ForeignKeyInfo, TableInfo


def _pk(name: str = "id") -> ColumnInfo:
    return ColumnInfo(name=name, pg_type="integer", is_nullable=False, is_primary_key=True)


def _fk(name: str) -> ColumnInfo:
    return ColumnInfo(name=name, pg_type="integer", is_nullable=True)


def blog_tables() -> list[TableInfo]:
    """Authors with posts, comments, one profile and books through a join table."""
    return [
        TableInfo(
            name="authors",
            columns=[
                _pk(),
                ColumnInfo(name="name", pg_type="text", is_nullable=False),
                ColumnInfo(name="email", pg_type="text"),
            ],
        ),
        TableInfo(
            name="posts",
            columns=[
                _pk(),
                _fk("author_id"),
                ColumnInfo(name="title", pg_type="text", is_nullable=False),
                ColumnInfo(
                    name="status", pg_type="text", default_value="'draft'::text"
                ),
            ],
            foreign_keys=[ForeignKeyInfo("author_id", "authors", "id")],
        ),
        TableInfo(
            name="comments",
            columns=[
                _pk(),
                _fk("post_id"),
                ColumnInfo(name="body", pg_type="text"),
            ],
            foreign_keys=[ForeignKeyInfo("post_id", "posts", "id")],
        ),
        TableInfo(
            name="profiles",
            columns=[
                _pk(),
                ColumnInfo(name="author_id", pg_type="integer", is_unique=True),
                ColumnInfo(name="bio", pg_type="text"),
            ],
            foreign_keys=[ForeignKeyInfo("author_id", "authors", "id")],
        ),
        TableInfo(
            name="books",
            columns=[_pk(), ColumnInfo(name="title", pg_type="text")],
        ),
        TableInfo(
            name="authors_books",
            columns=[_fk("author_id"), _fk("book_id")],
            foreign_keys=[
                ForeignKeyInfo("author_id", "authors", "id"),
                ForeignKeyInfo("book_id", "books", "id"),
            ],
        ),
        TableInfo(
            name="vehicles",
            columns=[
                _pk(),
                ColumnInfo(name="type", pg_type="text"),
                ColumnInfo(name="wheels", pg_type="integer", default_value="4"),
            ],
        ),
    ]


@pytest.fixture
def store() -> MemoryStore:
    """
    Memory store with the blog schema and sample data.

    authors 7 (Ada) and 8 (Grace); Ada has posts 1 and 2, Grace has post 3.
    Post 1 has comments 10 and 11, post 2 has comment 12.
    Ada has a profile and two books, Grace has one.
    """
    store = MemoryStore()
    for table_info in blog_tables():
        store.define_table(table_info)

    store.insert("authors", {"id": 7, "name": "Ada", "email": "ada@example.com"})
    store.insert("authors", {"id": 8, "name": "Grace", "email": None})

    store.insert("posts", {"id": 1, "author_id": 7, "title": "Engines", "status": "published"})
    store.insert("posts", {"id": 2, "author_id": 7, "title": "Notes", "status": "draft"})
    store.insert("posts", {"id": 3, "author_id": 8, "title": "Compilers", "status": "draft"})

    store.insert("comments", {"id": 10, "post_id": 1, "body": "First"})
    store.insert("comments", {"id": 11, "post_id": 1, "body": "Second"})
    store.insert("comments", {"id": 12, "post_id": 2, "body": "Third"})

    store.insert("profiles", {"id": 1, "author_id": 7, "bio": "Analyst"})

    store.insert("books", {"id": 1, "title": "Sketch"})
    store.insert("books", {"id": 2, "title": "Translation"})
    store.insert("books", {"id": 3, "title": "Manual"})

    store.insert("authors_books", {"author_id": 7, "book_id": 2})
    store.insert("authors_books", {"author_id": 7, "book_id": 1})
    store.insert("authors_books", {"author_id": 8, "book_id": 3})

    return store


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config rooted in a temporary project with db/ and test/fixtures/."""
    (tmp_path / "db").mkdir()
    (tmp_path / "test" / "fixtures").mkdir(parents=True)

    config = Config()
    config.paths.project_root = str(tmp_path)
    return config


@pytest.fixture
def db_conn() -> Connection:
    """
    Provide a test database connection.

    Uses PG_FIXTURES_TEST_URL (default postgresql://localhost/pg_fixtures_test)
    and skips the test when no server is reachable.
    """
    url = os.environ.get("PG_FIXTURES_TEST_URL", "postgresql://localhost/pg_fixtures_test")
    try:
        conn = psycopg.connect(url, autocommit=False, connect_timeout=3)
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    yield conn

    # Rollback any changes
    conn.rollback()
    conn.close()


@pytest.fixture
def test_schema(db_conn: Connection) -> str:
    """
    Create a test schema with sample tables.

    Returns the schema name.
    """
    schema_name = "test_pg_fixtures"

    with db_conn.cursor() as cur:
        cur.execute(f"DROP SCHEMA IF EXISTS {schema_name} CASCADE")
        cur.execute(f"CREATE SCHEMA {schema_name}")

        cur.execute(f"""
            CREATE TABLE {schema_name}.authors (
                id INTEGER GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
                name TEXT NOT NULL,
                type TEXT,
                rating NUMERIC(4, 2) DEFAULT 0
            )
        """)

        cur.execute(f"""
            CREATE TABLE {schema_name}.posts (
                id SERIAL PRIMARY KEY,
                author_id INTEGER REFERENCES {schema_name}.authors(id),
                title TEXT NOT NULL,
                status TEXT DEFAULT 'draft',
                metadata JSONB,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
        """)

        cur.execute(f"""
            CREATE TABLE {schema_name}.profiles (
                id SERIAL PRIMARY KEY,
                author_id INTEGER UNIQUE REFERENCES {schema_name}.authors(id),
                bio TEXT
            )
        """)

        cur.execute(f"""
            CREATE TABLE {schema_name}.books (
                id SERIAL PRIMARY KEY,
                title TEXT NOT NULL
            )
        """)

        cur.execute(f"""
            CREATE TABLE {schema_name}.authors_books (
                author_id INTEGER NOT NULL REFERENCES {schema_name}.authors(id),
                book_id INTEGER NOT NULL REFERENCES {schema_name}.books(id)
            )
        """)

        db_conn.commit()

    yield schema_name

    # Cleanup
    db_conn.rollback()
    with db_conn.cursor() as cur:
        cur.execute(f"DROP SCHEMA IF EXISTS {schema_name} CASCADE")
        db_conn.commit()
