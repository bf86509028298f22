# tests/test_validator.py

import pytest

from keyhub.translation import validator
from keyhub.translation.validator import (
    KeyValidationOptions,
    calculate_similarity,
    check_duplicate,
    check_namespace_conflict,
    check_similarity,
    validate_batch,
    validate_complete,
    validate_format,
)


@pytest.mark.parametrize("key", ["home", "home.title", "home_page.title_2", "a.b.c", "A1_b2.C3"])
def test_validate_format_accepts_well_formed_keys(key):
    result = validate_format(key)
    assert result.is_valid
    assert result.message is None


@pytest.mark.parametrize("key, message", [
    ("", validator.MSG_EMPTY),
    ("   ", validator.MSG_EMPTY),
    ("home title", validator.MSG_WHITESPACE),
    (" home", validator.MSG_WHITESPACE),
    ("home\ttitle", validator.MSG_WHITESPACE),
    ("home-title", validator.MSG_CHARSET),
    ("home/title", validator.MSG_CHARSET),
    ("héllo", validator.MSG_CHARSET),
    ("1home", validator.MSG_LEADING_DIGIT),
    ("home..title", validator.MSG_CONSECUTIVE),
    ("home__title", validator.MSG_CONSECUTIVE),
    ("home._title", validator.MSG_CONSECUTIVE),
    ("home_.title", validator.MSG_CONSECUTIVE),
    (".home", validator.MSG_EDGES),
    ("_home", validator.MSG_EDGES),
    ("home.", validator.MSG_EDGES),
    ("home_", validator.MSG_EDGES),
])
def test_validate_format_rejects_each_rule_with_its_own_message(key, message):
    result = validate_format(key)
    assert not result.is_valid
    assert result.message == message


def test_check_duplicate_is_case_sensitive_by_default():
    existing = ["home.title"]
    assert not check_duplicate("home.title", existing).is_valid
    assert check_duplicate("HOME.TITLE", existing).is_valid


def test_check_duplicate_ignoring_case():
    result = check_duplicate("HOME.TITLE", ["home.title"], case_sensitive=False)
    assert not result.is_valid
    assert result.message == validator.MSG_DUPLICATE_IGNORE_CASE


def test_check_duplicate_trims_candidate():
    assert not check_duplicate("  home.title ", ["home.title"]).is_valid


def test_namespace_conflict_in_both_directions():
    existing = ["a.b"]
    ancestor = check_namespace_conflict("a", existing)
    descendant = check_namespace_conflict("a.b.c", existing)

    assert not ancestor.is_valid
    assert ancestor.conflicting_keys == ["a.b"]
    assert not descendant.is_valid
    assert descendant.conflicting_keys == ["a.b"]
    assert check_namespace_conflict("a.bb", existing).is_valid
    assert check_namespace_conflict("ab", existing).is_valid


def test_namespace_conflict_lists_three_keys_then_ellipsis():
    result = check_namespace_conflict("menu", ["menu.a", "menu.b", "menu.c", "menu.d"])
    assert not result.is_valid
    assert result.message == "Translation key conflicts with existing namespace: menu.a, menu.b, menu.c..."
    assert len(result.conflicting_keys) == 4


def test_namespace_conflict_without_ellipsis_for_three_or_fewer():
    result = check_namespace_conflict("menu", ["menu.a", "menu.b"])
    assert result.message == "Translation key conflicts with existing namespace: menu.a, menu.b"


def test_namespace_comparison_is_case_sensitive():
    assert check_namespace_conflict("Menu", ["menu.a"]).is_valid


def test_calculate_similarity():
    assert calculate_similarity("user.name", "user.nam") == pytest.approx(8 / 9)
    assert calculate_similarity("abc", "abc") == 1.0
    assert calculate_similarity("", "") == 1.0
    assert calculate_similarity("abc", "") == 0.0
    assert calculate_similarity("kitten", "sitting") == pytest.approx(4 / 7)


def test_check_similarity_flags_near_matches_only():
    result = check_similarity("user.name", ["user.nam", "account.id"])
    assert not result.is_valid
    assert result.similar_keys == ["user.nam"]
    assert "user.nam" in result.message


def test_check_similarity_ignores_exact_matches():
    assert check_similarity("user.name", ["user.name"]).is_valid


def test_check_similarity_respects_threshold():
    assert check_similarity("user.name", ["user.nam"], threshold=0.95).is_valid


def test_validate_complete_flags_similar_key_not_as_duplicate():
    options = KeyValidationOptions(check_similarity=True)
    result = validate_complete("user.name", ["user.nam"], options)
    assert not result.is_valid
    assert result.similar_keys == ["user.nam"]
    assert result.message != validator.MSG_DUPLICATE


def test_validate_complete_similarity_is_opt_in():
    assert validate_complete("user.name", ["user.nam"]).is_valid


def test_validate_complete_short_circuits_in_order():
    existing = ["home", "home.title"]
    # Format before anything else
    assert validate_complete("home title", existing).message == validator.MSG_WHITESPACE
    # Duplicate before namespace
    assert validate_complete("home", existing).message == validator.MSG_DUPLICATE
    # Namespace when enabled
    assert not validate_complete("home.title.main", existing).is_valid


def test_validate_complete_can_disable_namespace_check():
    options = KeyValidationOptions(check_namespace_conflict=False)
    assert validate_complete("a", ["a.b"], options).is_valid


def test_options_from_dict_uses_defaults_for_missing_values():
    options = KeyValidationOptions.from_dict({"case_sensitive": False})
    assert options.case_sensitive is False
    assert options.check_similarity is False
    assert options.similarity_threshold == validator.DEFAULT_SIMILARITY_THRESHOLD
    assert options.check_namespace_conflict is True


def test_options_from_dict_ignores_values_of_the_wrong_type():
    options = KeyValidationOptions.from_dict({
        "case_sensitive": "false",
        "check_similarity": 1,
        "similarity_threshold": True,
    })
    assert options.case_sensitive is True
    assert options.check_similarity is False
    assert options.similarity_threshold == validator.DEFAULT_SIMILARITY_THRESHOLD


def test_validate_batch_reports_each_key():
    results = validate_batch(
        ["home.title", "home.title", "app", "nav.menu", "nav", "bad key", "", "   "],
        ["app.name"],
    )

    assert [(r.key, r.is_valid) for r in results] == [
        ("home.title", False),
        ("home.title", False),
        ("app", False),
        ("nav.menu", True),
        ("nav", False),
        ("bad key", False),
    ]
    assert results[0].message == validator.MSG_IN_BATCH_DUPLICATE
    assert results[1].message == validator.MSG_IN_BATCH_DUPLICATE
    assert "namespace" in results[2].message
    # Conflicts with a key accepted earlier in the same batch
    assert "nav.menu" in results[4].message
    assert results[5].message == validator.MSG_WHITESPACE


def test_validate_batch_reports_existing_duplicate_before_in_batch_duplicate():
    results = validate_batch(["app.name", "app.name"], ["app.name"])
    assert [r.message for r in results] == [validator.MSG_DUPLICATE, validator.MSG_DUPLICATE]


def test_validation_result_to_dict_omits_empty_fields():
    assert validate_format("home").to_dict() == {"is_valid": True}
    payload = check_similarity("user.name", ["user.nam"]).to_dict()
    assert payload["is_valid"] is False
    assert payload["similar_keys"] == ["user.nam"]
    assert "conflicting_keys" not in payload
