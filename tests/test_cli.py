import pytest

from mixdiag.__main__ import main


@pytest.fixture
def sqlite_env(monkeypatch, widgets_db):
    monkeypatch.setenv("MIXDIAG_DB_DRIVER", "sqlite")
    monkeypatch.setenv("MIXDIAG_SQLITE_PATH", str(widgets_db))
    return widgets_db


def test_ensure_column_then_noop(sqlite_env, capsys):
    assert main(["ensure-column", "Widgets", "price", "integer"]) == 0
    out = capsys.readouterr().out
    assert "Added column Widgets.price" in out
    assert "3. price (integer, nullable: yes)" in out.lower()

    assert main(["ensure-column", "Widgets", "price", "integer"]) == 0
    assert "Column already present: Widgets.price" in capsys.readouterr().out


def test_missing_table_exits_one(sqlite_env, capsys):
    assert main(["ensure-column", "Ghost", "price", "integer"]) == 1
    assert "NotFound" in capsys.readouterr().err


def test_describe_reports_missing_tables(sqlite_env, capsys):
    assert main(["describe", "Widgets", "Ghost"]) == 0
    out = capsys.readouterr().out
    assert "1. id (INTEGER, nullable: YES)" in out
    assert "2. name (TEXT, nullable: NO)" in out
    assert "No Ghost table found" in out


def test_ensure_columns_from_manifest(sqlite_env, tmp_path, capsys):
    manifest = tmp_path / "cols.yaml"
    manifest.write_text("tables:\n  Widgets:\n    - {name: price, type: integer}\n", encoding="utf-8")
    assert main(["ensure-columns", str(manifest)]) == 0
    assert "price (integer, nullable: yes)" in capsys.readouterr().out.lower()


def test_missing_manifest_is_usage_error(sqlite_env, tmp_path, capsys):
    assert main(["ensure-columns", str(tmp_path / "absent.yaml")]) == 2
    assert "not found" in capsys.readouterr().err


def test_dry_run_masks_password(monkeypatch, capsys):
    monkeypatch.setenv("MIXDIAG_DB_PASSWORD", "Ready2go!")
    assert main(["--dry-run"]) == 0
    out = capsys.readouterr().out
    assert "db_password=***" in out
    assert "Ready2go!" not in out


def test_invalid_config_exits_two(monkeypatch, capsys):
    monkeypatch.setenv("MIXDIAG_DB_DRIVER", "oracle")
    assert main(["tables"]) == 2
    assert "Configuration invalid" in capsys.readouterr().err


def test_unreachable_database_exits_one(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("MIXDIAG_DB_DRIVER", "sqlite")
    monkeypatch.setenv("MIXDIAG_SQLITE_PATH", str(tmp_path / "missing" / "mixwarz.db"))
    assert main(["describe", "Widgets"]) == 1
    err = capsys.readouterr().err
    assert "ConnectionFailed" in err
    assert "unable to open database file" in err


def test_constraint_in_type_exits_one_and_leaves_table(sqlite_env, column_names, capsys):
    assert main(["ensure-column", "Widgets", "price", "integer NOT NULL DEFAULT 0"]) == 1
    assert "InvalidTypeExpression" in capsys.readouterr().err
    assert column_names(sqlite_env, "Widgets") == ["id", "name"]
