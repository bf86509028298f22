# tests/test_web.py

import pytest

from keyhub.project import store
from keyhub.web import sessions


@pytest.fixture
def demo_client(client, demo_project):
    return client, demo_project.id


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_unknown_route_is_json_404(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.get_json()["code"] == "not_found"


# ------------------------------------------------------------
# Languages
# ------------------------------------------------------------

def test_list_and_add_languages(client):
    codes = [lang["code"] for lang in client.get("/api/languages/").get_json()["languages"]]
    assert "en" in codes and "fr" in codes

    response = client.post("/api/languages/", json={"code": "de", "name": "German"})
    assert response.status_code == 201
    assert response.get_json()["language"]["code"] == "de"

    assert client.post("/api/languages/", json={"code": "de"}).status_code == 409
    bad = client.post("/api/languages/", json={"code": "not a code"})
    assert bad.status_code == 400
    assert bad.get_json()["code"] == "invalid_language_code"


def test_toggle_language(client):
    german_id = client.post("/api/languages/", json={"code": "de", "name": "German"}).get_json()["id"]
    assert client.post(f"/api/languages/{german_id}/toggle").status_code == 200

    active = [lang["code"] for lang in client.get("/api/languages/").get_json()["languages"]]
    every = [lang["code"] for lang in client.get("/api/languages/?all=1").get_json()["languages"]]
    assert "de" not in active
    assert "de" in every
    assert client.post("/api/languages/9999/toggle").status_code == 404


# ------------------------------------------------------------
# Projects
# ------------------------------------------------------------

def test_project_crud(client):
    response = client.post("/api/projects/", json={"name": "Shop", "languages": ["en", "ja"]})
    assert response.status_code == 201
    project_id = response.get_json()["project"]["id"]

    assert client.post("/api/projects/", json={"name": "Shop", "languages": ["en"]}).status_code == 409
    assert client.post("/api/projects/", json={"name": "", "languages": ["en"]}).status_code == 400

    response = client.put(f"/api/projects/{project_id}", json={"description": "Store front"})
    assert response.get_json()["project"]["description"] == "Store front"

    names = [p["name"] for p in client.get("/api/projects/").get_json()["projects"]]
    assert names == ["Shop"]

    assert client.delete(f"/api/projects/{project_id}").status_code == 200
    assert client.get(f"/api/projects/{project_id}").status_code == 404


def test_bundle_sorts_and_filters(demo_client):
    client, project_id = demo_client

    data = client.get(f"/api/projects/{project_id}/bundle?sort=key_asc").get_json()
    assert [g["key"] for g in data["groups"]] == ["home.subtitle", "home.title"]
    assert data["progress"] == {"overall": 50, "by_language": {"en": 100, "fr": 50}, "total_keys": 2}
    assert data["incomplete_keys"] == ["home.subtitle"]

    data = client.get(f"/api/projects/{project_id}/bundle?q=sub").get_json()
    assert [g["key"] for g in data["groups"]] == ["home.subtitle"]
    assert data["highlights"] == {"home.subtitle": "home.<mark>sub</mark>title"}

    response = client.get(f"/api/projects/{project_id}/bundle?sort=newest")
    assert response.status_code == 400


def test_project_languages(demo_client):
    client, project_id = demo_client

    response = client.post(f"/api/projects/{project_id}/languages", json={"code": "ja"})
    assert response.get_json()["project"]["selected_languages"] == ["en", "fr", "ja"]
    assert client.post(f"/api/projects/{project_id}/languages", json={"code": "ja"}).status_code == 409

    client.delete(f"/api/projects/{project_id}/languages/ja")
    client.delete(f"/api/projects/{project_id}/languages/fr")
    response = client.delete(f"/api/projects/{project_id}/languages/en")
    assert response.status_code == 400
    assert response.get_json()["code"] == "last_language"


# ------------------------------------------------------------
# Keys and cells
# ------------------------------------------------------------

def test_create_key(demo_client):
    client, project_id = demo_client
    response = client.post(f"/api/projects/{project_id}/keys", json={"key": "footer.copyright"})
    assert response.status_code == 201
    assert response.get_json()["group"]["key"] == "footer.copyright"
    assert "footer.copyright" in client.get(f"/api/projects/{project_id}/keys").get_json()["keys"]


def test_rejected_key_returns_validation_details(demo_client):
    client, project_id = demo_client
    response = client.post(f"/api/projects/{project_id}/keys", json={"key": "home"})

    assert response.status_code == 400
    body = response.get_json()
    assert body["code"] == "invalid_key"
    assert body["validation"]["is_valid"] is False
    assert "home.title" in body["validation"]["conflicting_keys"]


def test_validate_endpoint_modes(demo_client):
    client, project_id = demo_client
    url = f"/api/projects/{project_id}/keys/validate"

    assert client.post(url, json={"key": "home", "mode": "format"}).get_json() == {"is_valid": True}
    assert client.post(url, json={"key": "home"}).get_json()["is_valid"] is False


def test_batch_create_from_text(demo_client):
    client, project_id = demo_client
    response = client.post(f"/api/projects/{project_id}/keys/batch",
                           json={"keys": "menu.open\nmenu.close\nbad key\n"})
    body = response.get_json()
    assert body["success_count"] == 2
    assert body["failure_count"] == 1
    assert body["failures"][0]["key"] == "bad key"


def test_rename_and_delete_keys(demo_client):
    client, project_id = demo_client
    response = client.post(f"/api/projects/{project_id}/keys/rename",
                           json={"old_key": "home.title", "new_key": "landing.heading"})
    assert response.get_json() == {"key": "landing.heading"}

    response = client.delete(f"/api/projects/{project_id}/keys", json={"keys": ["landing.heading"]})
    assert response.get_json() == {"deleted": 1}
    assert client.get(f"/api/projects/{project_id}/keys/landing.heading").status_code == 404


def test_update_cell(demo_client):
    client, project_id = demo_client
    response = client.put(f"/api/projects/{project_id}/cells",
                          json={"key": "home.subtitle", "language": "fr", "value": "Commencez ici"})
    assert response.get_json() == {"value": "Commencez ici", "is_completed": True}
    assert store.get_project(project_id).completed_keys == 2

    response = client.put(f"/api/projects/{project_id}/cells",
                          json={"key": "home.subtitle", "language": "ja", "value": "x"})
    assert response.status_code == 404


# ------------------------------------------------------------
# Import and export
# ------------------------------------------------------------

def test_import_without_conflict(client):
    response = client.post("/api/import", json={
        "filename": "Shop_translations_2024-05-01.csv",
        "content": 'Key,en\n"cart.title","Cart"\n',
    })
    assert response.status_code == 201
    body = response.get_json()
    assert body["success"] is True
    assert body["project"]["name"] == "Shop"


def test_import_conflict_then_confirm(demo_client):
    client, project_id = demo_client
    response = client.post("/api/import", json={"filename": "Demo.csv", "content": 'Key,en\n"x.y","X"\n'})
    body = response.get_json()
    assert response.status_code == 200
    assert body["needs_overwrite_confirmation"] is True
    session_id = body["session_id"]

    state = client.get(f"/api/import/{session_id}").get_json()["session"]
    assert state["state"] == "needs_confirmation"
    assert state["conflicting_project"]["id"] == project_id

    response = client.post(f"/api/import/{session_id}/confirm")
    assert response.status_code == 201
    new_id = response.get_json()["project"]["id"]
    assert client.get(f"/api/projects/{project_id}").status_code == 404
    assert client.get(f"/api/projects/{new_id}/keys").get_json() == {"keys": ["x.y"]}


def test_import_conflict_then_cancel(demo_client):
    client, project_id = demo_client
    session_id = client.post("/api/import", json={
        "filename": "Demo.csv", "content": 'Key,en\n"x.y","X"\n',
    }).get_json()["session_id"]

    response = client.post(f"/api/import/{session_id}/cancel")
    assert response.get_json()["success"] is False
    assert client.post(f"/api/import/{session_id}/confirm").status_code == 400
    assert client.get(f"/api/projects/{project_id}/keys").get_json()["keys"] == ["home.subtitle", "home.title"]


def test_unknown_import_session(client):
    response = client.post("/api/import/missing/confirm")
    assert response.status_code == 404
    assert response.get_json()["code"] == "session_not_found"


def test_malformed_import_is_rejected_and_session_dropped(client):
    response = client.post("/api/import", json={"filename": "bad.json", "content": "{oops"})
    assert response.status_code == 400
    assert response.get_json()["code"] == "invalid_json"
    assert sessions._sessions == {}


def test_import_requires_content(client):
    response = client.post("/api/import", json={"filename": "x.csv"})
    assert response.status_code == 400
    assert response.get_json()["code"] == "missing_content"


def test_csv_download(demo_client):
    client, project_id = demo_client
    response = client.get(f"/api/projects/{project_id}/export/csv")

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert 'filename="Demo_translations_' in response.headers["Content-Disposition"]
    assert response.data.startswith(b"\xef\xbb\xbfKey,en,fr\n")

    history = client.get(f"/api/exports/history?project_id={project_id}").get_json()["exports"]
    assert [entry["format"] for entry in history] == ["csv"]


def test_single_language_download(demo_client):
    client, project_id = demo_client
    response = client.get(f"/api/projects/{project_id}/export/languages/fr")
    assert response.get_json() == {"home.title": "Bienvenue"}
    assert client.get(f"/api/projects/{project_id}/export/languages/ja").status_code == 404


# ------------------------------------------------------------
# Settings
# ------------------------------------------------------------

def test_settings_round_trip(client):
    body = client.get("/api/settings/").get_json()
    assert body["config"]["default_sort"] == "time_desc"
    assert "key_asc" in body["meta"]["sort_options"]

    response = client.put("/api/settings/", json={"config": {
        "default_sort": "key_asc",
        "validation": {"check_similarity": False},
    }})
    config = response.get_json()["config"]
    assert config["default_sort"] == "key_asc"
    assert config["validation"]["check_similarity"] is False
    assert config["validation"]["check_namespace_conflict"] is True


def test_settings_rejects_bad_values(client):
    for changes, code in [
        ({"log_mode": "loud"}, "invalid_log_mode"),
        ({"colour": "blue"}, "unknown_setting"),
        ({"validation": {"similarity_threshold": 2}}, "invalid_threshold"),
        ({"validation": {"similarity_threshold": True}}, "invalid_threshold"),
        ({"validation": {"case_sensitive": "false"}}, "invalid_validation"),
        ({"validation": {"check_namespace_conflict": 0}}, "invalid_validation"),
        ({"default_sort": "newest"}, "invalid_sort"),
    ]:
        response = client.put("/api/settings/", json={"config": changes})
        assert response.status_code == 400
        assert response.get_json()["code"] == code


def test_default_sort_setting_applies_to_bundle(demo_client):
    client, project_id = demo_client
    client.put("/api/settings/", json={"config": {"default_sort": "key_desc"}})
    data = client.get(f"/api/projects/{project_id}/bundle").get_json()
    assert [g["key"] for g in data["groups"]] == ["home.title", "home.subtitle"]


def test_rejected_validation_settings_are_not_saved(client):
    client.put("/api/settings/", json={"config": {"validation": {"case_sensitive": "false"}}})
    assert client.get("/api/settings/").get_json()["config"]["validation"]["case_sensitive"] is True
