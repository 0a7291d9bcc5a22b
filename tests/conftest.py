import os
import sqlite3

import pytest

from mixdiag.config.settings import DatabaseConfig


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # keep a developer's .env / MIXDIAG_* exports out of the tests
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("MIXDIAG_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def widgets_db(tmp_path):
    path = tmp_path / "widgets.db"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE Widgets (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    conn.execute("INSERT INTO Widgets (name) VALUES ('sprocket'), ('gear')")
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def db_config(widgets_db):
    return DatabaseConfig(driver="sqlite", path=str(widgets_db))


@pytest.fixture
def read_only_config(widgets_db):
    return DatabaseConfig(driver="sqlite", path=str(widgets_db), read_only=True)


@pytest.fixture
def column_names():
    """Read column names straight from the file, bypassing the toolkit."""
    def _read(path, table):
        conn = sqlite3.connect(path)
        try:
            return [r[1] for r in conn.execute(f'PRAGMA table_info("{table}")').fetchall()]
        finally:
            conn.close()
    return _read
