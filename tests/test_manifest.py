import sqlite3

import pytest

from mixdiag.domain.schema.manifest import load_manifest
from mixdiag.domain.schema.models import RequiredColumnSpec
from mixdiag.services.schema_guard import open_guard


def _write(tmp_path, text):
    path = tmp_path / "columns.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_manifest_preserves_file_order(tmp_path):
    path = _write(tmp_path, """
tables:
  Widgets:
    - name: price
      type: integer
    - name: released_at
      type: TEXT
  Gadgets:
    - {name: colour, type: TEXT}
""")
    manifest = load_manifest(path)
    specs = list(manifest.specs())
    assert [t for t, _ in specs] == ["Widgets", "Gadgets"]
    assert specs[0][1] == [
        RequiredColumnSpec(name="price", sql_type="integer"),
        RequiredColumnSpec(name="released_at", sql_type="TEXT"),
    ]


def test_missing_manifest_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_manifest(str(tmp_path / "nope.yaml"))


@pytest.mark.parametrize(
    "text",
    [
        "tables: [1, 2]",
        "tables:\n  Widgets: []",
        "tables:\n  Widgets:\n    - name: price",
        "tables:\n  Widgets:\n    - name: ''\n      type: integer",
        "- just\n- a list",
    ],
)
def test_invalid_manifest_is_rejected(tmp_path, text):
    with pytest.raises(ValueError):
        load_manifest(_write(tmp_path, text))


def test_manifest_run_is_idempotent(tmp_path, db_config, widgets_db, column_names):
    conn = sqlite3.connect(widgets_db)
    conn.execute("CREATE TABLE Gadgets (id INTEGER PRIMARY KEY)")
    conn.commit()
    conn.close()
    manifest = load_manifest(_write(tmp_path, """
tables:
  Widgets:
    - {name: price, type: integer}
  Gadgets:
    - {name: colour, type: TEXT}
"""))

    def run():
        added = []
        with open_guard(db_config) as guard:
            for table, specs in manifest.specs():
                for spec in specs:
                    added.append(guard.ensure(table, spec).added)
        return added

    assert run() == [True, True]
    assert run() == [False, False]
    assert column_names(widgets_db, "Widgets") == ["id", "name", "price"]
    assert column_names(widgets_db, "Gadgets") == ["id", "colour"]
