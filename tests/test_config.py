"""
Tests for cmpkgtool.config.loader module.

Tests settings loading and merging including:
- Built-in defaults
- Settings file discovery and deep merge
- Environment and CLI overrides
- Error handling
"""

from __future__ import annotations

import pytest

from cmpkgtool.config import DEFAULT_SETTINGS, apply_cli_overrides, load_settings
from cmpkgtool.config.loader import find_settings_file
from cmpkgtool.exceptions import ConfigError


class TestSettingsLoading:
    """Tests for basic settings loading."""

    def test_defaults_without_file(self, tmp_test_dir):
        """Test that defaults apply when no settings file exists."""
        settings = load_settings(search_dir=tmp_test_dir)

        assert settings["site"]["code"] is None
        assert settings["application"]["install_args"] == "/qn /norestart"
        assert settings["site"]["verify_ssl"] is True
        assert settings["site"]["scope_id"] is None
        assert settings["application"]["language"] == "en-US"

    def test_defaults_are_not_mutated(self, tmp_test_dir, create_yaml_file):
        """Test that loading never mutates DEFAULT_SETTINGS."""
        path = create_yaml_file("cmpkg.yaml", {"site": {"code": "PS1"}})

        settings = load_settings(path)
        settings["application"]["max_runtime"] = 5

        assert DEFAULT_SETTINGS["site"]["code"] is None
        assert DEFAULT_SETTINGS["application"]["max_runtime"] == 120

    def test_file_deep_merges_over_defaults(self, create_yaml_file):
        """Test that file values override defaults section by section."""
        path = create_yaml_file(
            "cmpkg.yaml",
            {
                "site": {"code": "PS1", "server": "cm01.corp.example.com"},
                "application": {"folder_root": "Packaged", "max_runtime": 60},
            },
        )

        settings = load_settings(path)

        assert settings["site"]["code"] == "PS1"
        assert settings["site"]["timeout"] == 60
        assert settings["application"]["folder_root"] == "Packaged"
        assert settings["application"]["max_runtime"] == 60
        assert settings["application"]["user_interaction"] == "Hidden"

    def test_discovers_file_in_parent_directory(self, tmp_test_dir, create_yaml_file):
        """Test upward discovery from a nested working directory."""
        create_yaml_file("cmpkg.yaml", {"distribution": {"group": "All DPs"}})
        nested = tmp_test_dir / "apps" / "Acme"
        nested.mkdir(parents=True)

        assert find_settings_file(nested) == (tmp_test_dir / "cmpkg.yaml").resolve()
        settings = load_settings(search_dir=nested)

        assert settings["distribution"]["group"] == "All DPs"


class TestEnvironmentOverrides:
    """Tests for CMPKG_* environment overrides."""

    def test_env_overrides_file(self, monkeypatch, create_yaml_file):
        """Test that environment values win over the settings file."""
        path = create_yaml_file("cmpkg.yaml", {"site": {"code": "PS1", "server": "a"}})
        monkeypatch.setenv("CMPKG_SITE_CODE", "CAS")
        monkeypatch.setenv("CMPKG_SERVER", "cm02.corp.example.com")

        settings = load_settings(path)

        assert settings["site"]["code"] == "CAS"
        assert settings["site"]["server"] == "cm02.corp.example.com"

    def test_empty_env_value_is_ignored(self, monkeypatch, create_yaml_file):
        """Test that an empty variable does not clear a configured value."""
        path = create_yaml_file("cmpkg.yaml", {"site": {"code": "PS1"}})
        monkeypatch.setenv("CMPKG_SITE_CODE", "")

        assert load_settings(path)["site"]["code"] == "PS1"


class TestCliOverrides:
    """Tests for apply_cli_overrides."""

    def test_values_applied(self, sample_settings):
        """Test that CLI flags replace settings."""
        result = apply_cli_overrides(
            sample_settings, site_code="CAS", server="cm02", dp_group="Pilot DPs"
        )

        assert result["site"]["code"] == "CAS"
        assert result["site"]["server"] == "cm02"
        assert result["distribution"]["group"] == "Pilot DPs"
        assert result["site"]["timeout"] == 60

    def test_none_values_keep_settings(self, sample_settings):
        """Test that absent flags leave settings untouched."""
        result = apply_cli_overrides(sample_settings)

        assert result["site"]["code"] == "PS1"
        assert result["distribution"]["group"] is None

    def test_input_not_mutated(self, sample_settings):
        """Test that the input settings are not modified."""
        apply_cli_overrides(sample_settings, site_code="CAS")
        assert sample_settings["site"]["code"] == "PS1"


class TestSettingsErrors:
    """Tests for error handling."""

    def test_explicit_missing_file(self, tmp_test_dir):
        """Test that a missing explicit settings file is an error."""
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_test_dir / "nope.yaml")

    def test_invalid_yaml(self, tmp_test_dir):
        """Test that YAML syntax errors are reported."""
        path = tmp_test_dir / "cmpkg.yaml"
        path.write_text("site: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Error parsing YAML") as exc:
            load_settings(path)

        assert exc.value.__cause__ is not None

    def test_empty_file(self, tmp_test_dir):
        """Test that an empty settings file is rejected."""
        path = tmp_test_dir / "cmpkg.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ConfigError, match="empty"):
            load_settings(path)

    def test_non_mapping_document(self, tmp_test_dir):
        """Test that a top-level list is rejected."""
        path = tmp_test_dir / "cmpkg.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path)

    def test_non_mapping_section(self, create_yaml_file):
        """Test that a scalar section is rejected."""
        path = create_yaml_file("cmpkg.yaml", {"site": "PS1"})

        with pytest.raises(ConfigError, match="'site' must be a mapping"):
            load_settings(path)
