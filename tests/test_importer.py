# tests/test_importer.py

import json
from unittest.mock import patch

import pytest

from keyhub.core import database as db
from keyhub.exceptions import ImportFormatError, InvalidOperationError, StorageError
from keyhub.project import importer, store
from keyhub.project.importer import ImportSession, ImportState


CSV_CONTENT = 'Key,en,fr,xx\n"home.title","Home","Accueil","?"\n"home.body","Body","",""\n'


def project_names():
    return [row["name"] for row in db.get_all_projects()]


def test_import_csv_without_conflict(temp_db):
    outcome = importer.import_content(CSV_CONTENT, "Shop_translations_2024-05-01.csv")

    assert outcome.success
    assert outcome.project.name == "Shop"
    assert outcome.project.selected_languages == ["en", "fr"]
    assert outcome.skipped_languages == ["xx"]
    assert outcome.key_count == 2
    assert outcome.imported_count == 4
    assert store.export_translations(outcome.project.id) == {
        "home.body": {"en": "Body", "fr": ""},
        "home.title": {"en": "Home", "fr": "Accueil"},
    }


def test_import_keeps_file_order_as_creation_order(temp_db):
    outcome = importer.import_content(CSV_CONTENT, "Shop.csv")
    bundle = store.load_project_bundle(outcome.project.id, "time_asc")
    assert [group.key for group in bundle.groups] == ["home.title", "home.body"]


def test_import_json_bundle_uses_project_name(temp_db):
    content = json.dumps({
        "project": {"id": 9, "name": "Mobile", "description": "App strings"},
        "languages": [{"code": "ja", "name": "Japanese"}],
        "translations": {"menu.open": {"ja": "開く"}},
        "exportTime": "2024-05-01T08:30:00.000Z",
    })
    outcome = importer.import_content(content, "whatever.json")

    assert outcome.success
    assert outcome.project.name == "Mobile"
    assert outcome.project.description == "App strings"
    assert store.get_key_group(outcome.project.id, "menu.open").value("ja") == "開く"


def test_import_fills_languages_missing_from_a_key(temp_db):
    content = json.dumps({"a.b": {"en": "A"}, "c.d": {"fr": "C"}})
    outcome = importer.import_content(content, "Mixed.json")
    assert store.export_translations(outcome.project.id) == {
        "a.b": {"en": "A", "fr": ""},
        "c.d": {"en": "", "fr": "C"},
    }


def test_import_skips_keys_with_invalid_format(temp_db):
    content = 'Key,en\n"ok.key","x"\n"bad key","y"\n"1st","z"\n'
    outcome = importer.import_content(content, "Keys.csv")
    assert outcome.success
    assert outcome.skipped_keys == ["bad key", "1st"]
    assert store.get_keys(outcome.project.id) == ["ok.key"]


def test_import_without_supported_languages_writes_nothing(temp_db):
    session = ImportSession()
    outcome = importer.import_content("Key,xx,yy\na,b,c\n", "Nothing.csv", session)

    assert not outcome.success
    assert outcome.skipped_languages == ["xx", "yy"]
    assert session.state == ImportState.ABORTED
    assert project_names() == []


def test_malformed_payload_raises_before_any_write(temp_db):
    with pytest.raises(ImportFormatError):
        importer.import_content("{broken", "Broken.json")
    assert project_names() == []


def test_conflict_asks_for_confirmation_and_leaves_storage_untouched(demo_project):
    before = store.export_translations(demo_project.id)
    session = ImportSession()

    outcome = importer.import_content('Key,en\n"other.key","Other"\n', "Demo.csv", session)

    assert not outcome.success
    assert outcome.needs_overwrite_confirmation
    assert outcome.conflicting_project.id == demo_project.id
    assert outcome.conflicting_project.language_count == 2
    assert session.state == ImportState.NEEDS_CONFIRMATION
    assert store.export_translations(demo_project.id) == before


def test_confirm_overwrite_replaces_the_project(demo_project):
    session = ImportSession()
    importer.import_content('Key,en\n"other.key","Other"\n', "Demo.csv", session)

    outcome = importer.confirm_overwrite_and_import(session)

    assert outcome.success
    assert outcome.project.id != demo_project.id
    assert db.get_project_by_id(demo_project.id) is None
    assert project_names() == ["Demo"]
    assert store.export_translations(outcome.project.id) == {"other.key": {"en": "Other"}}
    assert session.state == ImportState.COMMITTED


def test_cancel_then_confirm_is_refused(demo_project):
    session = ImportSession()
    importer.import_content('Key,en\n"other.key","Other"\n', "Demo.csv", session)

    outcome = importer.cancel_import(session)
    assert not outcome.success
    assert outcome.message == importer.MSG_CANCELLED
    assert session.is_finished

    with pytest.raises(InvalidOperationError):
        importer.confirm_overwrite_and_import(session)
    assert db.get_project_by_id(demo_project.id) is not None


def test_session_loads_only_once(temp_db):
    session = ImportSession().load('Key,en\na,b\n', "One.csv")
    with pytest.raises(InvalidOperationError):
        session.load('Key,en\na,b\n', "Two.csv")


def test_committed_session_cannot_be_cancelled(temp_db):
    session = ImportSession()
    importer.import_content('Key,en\na,b\n', "One.csv", session)
    with pytest.raises(InvalidOperationError):
        session.cancel()


def test_failed_write_removes_the_new_project(temp_db):
    with patch.object(db, "bulk_upsert_translations", side_effect=StorageError("disk full")):
        with pytest.raises(StorageError):
            importer.import_content('Key,en\na,b\n', "Fails.csv")
    assert project_names() == []


def test_failed_overwrite_keeps_the_existing_project(demo_project):
    session = ImportSession()
    outcome = importer.import_content('Key,en\n"x.y","X"\n', "Demo_translations.csv", session)
    assert outcome.needs_overwrite_confirmation

    with patch.object(db, "bulk_upsert_translations", side_effect=StorageError("disk full")):
        with pytest.raises(StorageError):
            importer.confirm_overwrite_and_import(session)

    assert project_names() == ["Demo"]
    assert db.get_project_by_name("Demo")["id"] == demo_project.id
    assert store.get_keys(demo_project.id) == ["home.subtitle", "home.title"]
    assert store.get_key_group(demo_project.id, "home.title").value("fr") == "Bienvenue"


def test_cancelled_picker_does_not_touch_storage(temp_db, fake_files):
    files = fake_files(open_path=None)
    with patch.object(db, "query") as mock_query, patch.object(db, "execute") as mock_execute:
        outcome = importer.import_project(files)

    assert not outcome.success
    assert outcome.message == importer.MSG_CANCELLED
    mock_query.assert_not_called()
    mock_execute.assert_not_called()


def test_import_project_reads_the_picked_file(temp_db, fake_files):
    files = fake_files(open_path="/in/Shop_translations.csv", files={"Shop_translations.csv": CSV_CONTENT})
    outcome = importer.import_project(files)
    assert outcome.success
    assert outcome.project.name == "Shop"
