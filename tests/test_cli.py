# tests/test_cli.py

from keyhub import cli
from keyhub.core import database as db
from keyhub.project import store
from keyhub.project.interchange import BOM


def write_csv(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_languages_lists_active_codes(temp_db, capsys):
    assert cli.main(["languages"]) == 0
    output = capsys.readouterr().out
    assert "en" in output
    assert "English" in output


def test_import_then_reimport_needs_overwrite(temp_db, tmp_path, capsys):
    path = write_csv(tmp_path, "Shop_translations.csv", 'Key,en,xx\n"cart.title","Cart",""\n')

    assert cli.main(["import", str(path)]) == 0
    output = capsys.readouterr().out
    assert "Skipped unsupported languages: xx" in output
    project = db.get_project_by_name("Shop")
    assert project is not None

    assert cli.main(["import", str(path)]) == 1
    assert "--overwrite" in capsys.readouterr().out
    assert db.get_project_by_name("Shop")["id"] == project["id"]

    assert cli.main(["import", str(path), "--overwrite"]) == 0
    assert db.get_project_by_name("Shop")["id"] != project["id"]


def test_import_missing_file(temp_db, tmp_path, capsys):
    assert cli.main(["import", str(tmp_path / "missing.csv")]) == 1
    assert "File not found" in capsys.readouterr().out


def test_import_malformed_file_reports_error(temp_db, tmp_path, capsys):
    path = write_csv(tmp_path, "Broken.json", "{oops")
    assert cli.main(["import", str(path)]) == 1
    assert capsys.readouterr().out.startswith("Error: Invalid JSON")


def test_export_every_language(demo_project, tmp_path, capsys):
    out_dir = tmp_path / "out"
    assert cli.main(["export", str(demo_project.id), "--format", "languages", "--out", str(out_dir)]) == 0
    names = sorted(path.name for path in out_dir.iterdir())
    assert len(names) == 2
    assert names[0].startswith("Demo_translations_en_")
    assert "Exported 2 languages, 0 failed" in capsys.readouterr().out


def test_export_csv_file(demo_project, tmp_path):
    assert cli.main(["export", str(demo_project.id), "--format", "csv", "--out", str(tmp_path)]) == 0
    (path,) = tmp_path.glob("Demo_translations_*.csv")
    assert path.read_text(encoding="utf-8").startswith(BOM + "Key,en,fr")


def test_export_unknown_project(temp_db, tmp_path, capsys):
    assert cli.main(["export", "999", "--out", str(tmp_path)]) == 1
    assert "Error:" in capsys.readouterr().out
    assert store.list_projects() == []
