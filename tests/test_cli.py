"""Tests for the pg-fixtures command line."""

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from pg_fixtures import Config, MemoryStore
from pg_fixtures import cli as cli_module
from pg_fixtures.cli import cli


@pytest.fixture
def config_file(config: Config) -> Path:
    path = Path(config.paths.project_root) / "pg-fixtures.toml"
    config.to_toml(path)
    return path


@pytest.fixture
def runner(store: MemoryStore, monkeypatch) -> CliRunner:
    """CliRunner whose commands use the memory store instead of a connection."""
    opened: list[Config] = []

    def open_store(config: Config) -> MemoryStore:
        opened.append(config)
        return store

    monkeypatch.setattr(cli_module, "_open_store", open_store)
    runner = CliRunner()
    runner.opened = opened
    return runner


def test_dump(runner: CliRunner, config_file: Path):
    result = runner.invoke(cli, ["--config", str(config_file), "dump", "authors", "--limit", "1"])

    assert result.exit_code == 0, result.output
    dumped = config_file.parent / "db" / "authors.yml"
    assert str(dumped) in result.output
    assert yaml.safe_load(dumped.read_text()) == [
        {"id": 7, "name": "Ada", "email": "ada@example.com"}
    ]


def test_load(runner: CliRunner, config_file: Path, store: MemoryStore):
    (config_file.parent / "db" / "books.yml").write_text("- id: 9\n  title: Loaded\n")

    result = runner.invoke(cli, ["--config", str(config_file), "load", "books"])

    assert result.exit_code == 0, result.output
    assert "Loaded 1 rows into books" in result.output
    assert [r.id for r in store.find_all("books")] == [9]


def test_fixture_with_include_and_where(runner: CliRunner, config_file: Path):
    result = runner.invoke(
        cli,
        [
            "--config",
            str(config_file),
            "fixture",
            "authors",
            "--include",
            "{posts: comments}",
            "--where",
            "id=8",
        ],
    )

    assert result.exit_code == 0, result.output
    fixtures_dir = config_file.parent / "test" / "fixtures"
    assert list(yaml.safe_load((fixtures_dir / "authors.yml").read_text())) == [
        "author_00008"
    ]
    assert list(yaml.safe_load((fixtures_dir / "posts.yml").read_text())) == ["post_00003"]
    assert (fixtures_dir / "authors_books.yml").exists()
    # Grace's post has no comments, so no comments file is written
    assert not (fixtures_dir / "comments.yml").exists()


def test_fixture_keep_current(runner: CliRunner, config_file: Path):
    fixtures_dir = config_file.parent / "test" / "fixtures"
    (fixtures_dir / "books.yml").write_text("book_00042:\n  id: 42\n  title: Kept\n")

    result = runner.invoke(
        cli, ["--config", str(config_file), "fixture", "books", "--limit", "1", "--keep-current"]
    )

    assert result.exit_code == 0, result.output
    assert list(yaml.safe_load((fixtures_dir / "books.yml").read_text())) == [
        "book_00001",
        "book_00042",
    ]


def test_fixture_bad_where(runner: CliRunner, config_file: Path):
    result = runner.invoke(
        cli, ["--config", str(config_file), "fixture", "authors", "--where", "id"]
    )

    assert result.exit_code == 2
    assert "COLUMN=VALUE" in result.output


def test_fixture_invalid_include(runner: CliRunner, config_file: Path):
    result = runner.invoke(
        cli, ["--config", str(config_file), "fixture", "authors", "--include", "3"]
    )

    assert result.exit_code == 1
    assert "Unknown includes type" in result.output


def test_habtm(runner: CliRunner, config_file: Path):
    result = runner.invoke(cli, ["--config", str(config_file), "habtm", "books"])

    assert result.exit_code == 0, result.output
    assert "authors_books.yml" in result.output


def test_skeleton(runner: CliRunner, config_file: Path):
    result = runner.invoke(cli, ["--config", str(config_file), "skeleton", "vehicles"])

    assert result.exit_code == 0, result.output
    written = config_file.parent / "test" / "fixtures" / "vehicles.yml"
    assert yaml.safe_load(written.read_text()) == {
        "record_1": {"type": None, "wheels": 4},
        "record_2": {"type": None, "wheels": 4},
    }


def test_unknown_table(runner: CliRunner, config_file: Path):
    result = runner.invoke(cli, ["--config", str(config_file), "dump", "missing"])

    assert result.exit_code == 1
    assert "missing" in result.output


def test_overrides_reach_store(runner: CliRunner, config_file: Path):
    result = runner.invoke(
        cli,
        [
            "--config",
            str(config_file),
            "--database-url",
            "postgresql://other/db",
            "--schema",
            "blog",
            "dump",
            "books",
        ],
    )

    assert result.exit_code == 0, result.output
    (config,) = runner.opened
    assert config.database.url == "postgresql://other/db"
    assert config.database.schema_name == "blog"


@pytest.mark.parametrize("option, value", [("--include", "{posts: [comments"), ("--where", "id=[7")])
def test_fixture_invalid_yaml_option(runner: CliRunner, config_file: Path, option, value):
    result = runner.invoke(
        cli, ["--config", str(config_file), "fixture", "authors", option, value]
    )

    assert result.exit_code == 2
    assert option in result.output
    assert "not valid YAML" in result.output


class _FakeConnection:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


@pytest.mark.parametrize("args", [["dump", "books"], ["dump", "missing"]])
def test_connection_closed_after_command(
    store: MemoryStore, config_file: Path, monkeypatch, args
):
    """The connection is closed whether the command succeeds or fails."""
    conn = _FakeConnection()
    monkeypatch.setattr(cli_module.psycopg, "connect", lambda url, **kwargs: conn)
    monkeypatch.setattr(cli_module, "PostgresStore", lambda c, schema: store)

    result = CliRunner().invoke(cli, ["--config", str(config_file), *args])

    assert result.exit_code in (0, 1)
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert conn.closed
