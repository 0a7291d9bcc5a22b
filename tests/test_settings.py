import pytest
from pydantic import ValidationError

from mixdiag.config.settings import DatabaseConfig, DiagConfig, load_config


def test_defaults_target_local_mixwarz():
    conf = load_config()
    db = conf.database()
    assert db.driver == "postgres"
    assert (db.host, db.port, db.name, db.user) == ("localhost", 5432, "MixWarz", "postgres")
    assert db.schema_name == "public"
    assert conf.api_base_url == "https://localhost:7001"
    assert conf.api_verify_tls is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MIXDIAG_DB_DRIVER", "SQLite")
    monkeypatch.setenv("MIXDIAG_SQLITE_PATH", "/tmp/dev.db")
    monkeypatch.setenv("MIXDIAG_DB_READ_ONLY", "true")
    monkeypatch.setenv("MIXDIAG_HTTP_TIMEOUT_SECONDS", "-3")
    conf = DiagConfig()
    assert conf.db_driver == "sqlite"
    assert conf.http_timeout_seconds == 0.0
    db = conf.database()
    assert db.path == "/tmp/dev.db"
    assert db.read_only is True
    assert db.describe() == "sqlite:/tmp/dev.db (read-only)"


def test_env_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("MIXDIAG_DB_NAME=mixwarz_test\nMIXDIAG_DB_PORT=5433\n", encoding="utf-8")
    conf = DiagConfig()
    assert conf.db_name == "mixwarz_test"
    assert conf.db_port == 5433


def test_unknown_driver_rejected(monkeypatch):
    monkeypatch.setenv("MIXDIAG_DB_DRIVER", "mysql")
    with pytest.raises(ValidationError):
        DiagConfig()


def test_port_out_of_range_rejected():
    with pytest.raises(ValidationError):
        load_config(db_port=70000)


def test_password_never_shown():
    conf = load_config(db_password="Ready2go!")
    assert conf.masked_summary()["db_password"] == "***"
    db = conf.database()
    assert "Ready2go!" not in repr(db)
    assert "Ready2go!" not in db.describe()
    assert db.password == "Ready2go!"


def test_database_config_is_immutable():
    db = DatabaseConfig()
    with pytest.raises(ValidationError):
        db.host = "elsewhere"


def test_statement_timeout_is_optional_and_non_negative(monkeypatch):
    assert load_config().database().statement_timeout_ms is None
    monkeypatch.setenv("MIXDIAG_DB_STATEMENT_TIMEOUT_MS", "1500")
    assert DiagConfig().database().statement_timeout_ms == 1500
    monkeypatch.setenv("MIXDIAG_DB_STATEMENT_TIMEOUT_MS", "-5")
    assert DiagConfig().database().statement_timeout_ms == 0


def test_database_config_rejects_negative_statement_timeout():
    with pytest.raises(ValidationError):
        DatabaseConfig(statement_timeout_ms=-1)
