# tests/test_config.py

import pytest

from keyhub import config
from keyhub.core import database as db


def test_initialize_app_stores_defaults_once(temp_db):
    config.initialize_app()
    assert config.load_config() == config.DEFAULT_CONFIG

    config.update_config({"default_sort": "key_asc"})
    config.initialize_app()
    assert config.get_default_sort() == "key_asc"


def test_corrupt_config_falls_back_to_defaults(temp_db):
    db.set_app_config(config.CONFIG_KEY, "{not json")
    assert config.load_config() == config.DEFAULT_CONFIG

    db.set_app_config(config.CONFIG_KEY, "[1, 2]")
    assert config.load_config() == config.DEFAULT_CONFIG


def test_update_merges_nested_validation(temp_db):
    config.initialize_app()
    updated = config.update_config({"validation": {"case_sensitive": False}})

    assert updated["validation"]["case_sensitive"] is False
    assert updated["validation"]["check_similarity"] is True
    options = config.get_validation_options()
    assert options.case_sensitive is False
    assert options.check_similarity is True


def test_stored_config_missing_new_keys_gets_defaults(temp_db):
    db.set_app_config(config.CONFIG_KEY, '{"log_mode": "off"}')
    assert config.load_config()["validation"] == config.DEFAULT_CONFIG["validation"]


def test_save_rejects_unknown_log_mode(temp_db):
    with pytest.raises(ValueError):
        config.save_config({"log_mode": "verbose"})


def test_factory_reset_drops_projects(demo_project):
    config.factory_reset()
    assert db.get_all_projects() == []
    assert config.load_config() == config.DEFAULT_CONFIG
