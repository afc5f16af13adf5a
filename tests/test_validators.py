"""
Test: status normalization, update flag parsing, config validation.
"""
import pytest

from statusfile.config_schema import get_default_config, merge_config
from statusfile.errors import InvalidStatusError
from statusfile.validators import (
    STATUS_SYNONYMS,
    normalize_plag_flag,
    normalize_status,
    parse_update_flag,
    validate_config,
    validate_status,
)


class TestNormalizeStatus:
    @pytest.mark.parametrize("raw", ["passed", "bestanden", "OK", "success", "1", "yes", "Ja"])
    def test_passed_synonyms(self, raw):
        assert normalize_status(raw) == "passed"

    @pytest.mark.parametrize("raw", ["failed", "not passed", "Nicht Bestanden", "fail", "0", "no", "nein"])
    def test_failed_synonyms(self, raw):
        assert normalize_status(raw) == "failed"

    @pytest.mark.parametrize("raw", ["notgraded", "not graded", "nicht bewertet", "pending", "offen", ""])
    def test_notgraded_synonyms(self, raw):
        assert normalize_status(raw) == "notgraded"

    def test_trims_whitespace(self):
        assert normalize_status("  Passed \t") == "passed"

    def test_none_is_notgraded(self):
        assert normalize_status(None) == "notgraded"

    def test_unknown_passes_through(self):
        assert normalize_status("Maybe") == "maybe"

    def test_every_synonym_maps_to_canonical(self):
        for token, canonical in STATUS_SYNONYMS.items():
            assert normalize_status(token.upper()) == canonical

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            STATUS_SYNONYMS["vielleicht"] = "passed"


class TestValidateStatus:
    @pytest.mark.parametrize("status", ["passed", "failed", "notgraded"])
    def test_canonical_values_pass(self, status):
        validate_status(status)

    def test_invalid_names_all_canonical_values(self):
        with pytest.raises(InvalidStatusError) as exc:
            validate_status("maybe")
        message = str(exc.value)
        assert "'maybe'" in message
        for canonical in ("passed", "failed", "notgraded"):
            assert canonical in message
        assert exc.value.value == "maybe"

    def test_invalid_lists_synonyms(self):
        with pytest.raises(InvalidStatusError) as exc:
            validate_status("maybe")
        message = str(exc.value)
        for synonym in ("bestanden", "nicht bestanden", "nicht bewertet", "pending"):
            assert synonym in message


class TestParseUpdateFlag:
    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_is_false(self, raw):
        assert parse_update_flag(raw) is False

    @pytest.mark.parametrize("raw", [1, 2, -1, 1.0, "1", "2", " 1 ", "1.0"])
    def test_nonzero_numbers_are_true(self, raw):
        assert parse_update_flag(raw) is True

    @pytest.mark.parametrize("raw", [0, 0.0, "0", "0.0", "0.5"])
    def test_zero_numbers_are_false(self, raw):
        assert parse_update_flag(raw) is False

    @pytest.mark.parametrize("raw", ["true", "TRUE", "yes", "On"])
    def test_true_words(self, raw):
        assert parse_update_flag(raw) is True

    @pytest.mark.parametrize("raw", ["false", "no", "off", "x", "ja"])
    def test_other_words_are_false(self, raw):
        assert parse_update_flag(raw) is False

    def test_booleans(self):
        assert parse_update_flag(True) is True
        assert parse_update_flag(False) is False


class TestPlagFlag:
    def test_empty_is_none(self):
        assert normalize_plag_flag("") == "none"
        assert normalize_plag_flag(None) == "none"

    def test_lowercases(self):
        assert normalize_plag_flag(" Suspicion ") == "suspicion"


class TestValidateConfig:
    def test_defaults_have_no_errors(self):
        issues = validate_config(get_default_config())
        assert [i for i in issues if i["type"] == "error"] == []

    def test_unknown_format(self):
        issues = validate_config(merge_config({"format": "ods"}))
        assert any(i["type"] == "error" and "ods" in i["message"] for i in issues)

    def test_bad_delimiter(self):
        issues = validate_config(merge_config({"csv": {"delimiter": ";;"}}))
        assert any("delimiter" in i["message"] for i in issues)

    def test_unknown_encoding(self):
        issues = validate_config(merge_config({"csv": {"encoding": "klingon"}}))
        assert any("encoding" in i["message"] for i in issues)

    def test_long_sheet_title(self):
        issues = validate_config(merge_config({"sheet_titles": {"member": "x" * 40}}))
        assert any(i["type"] == "error" and "Sheet title" in i["message"] for i in issues)

    def test_plagiarism_update_warns(self):
        issues = validate_config(merge_config({"allow_plagiarism_update": True}))
        assert any(i["type"] == "warning" and "Plagiarism" in i["message"] for i in issues)

    def test_merge_keeps_unrelated_defaults(self):
        config = merge_config({"csv": {"delimiter": ";"}})
        assert config["csv"] == {"delimiter": ";", "encoding": "utf-8"}
        assert config["format"] == "xlsx"

    def test_default_copy_is_independent(self):
        config = get_default_config()
        config["csv"]["delimiter"] = ";"
        assert get_default_config()["csv"]["delimiter"] == ","
