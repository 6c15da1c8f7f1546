"""
Tests for profile loading (src/tools/config_loader.py)
"""

import pytest

from src.tools.config_loader import (
    DEFAULT_PROFILE,
    ConfigLoader,
    clustering_settings,
    geocoding_settings,
    get_config,
    heatmap_settings,
    insight_settings,
    search_settings,
)


class TestProfiles:

    def test_bundled_profiles(self):
        profiles = ConfigLoader.available_profiles()

        assert DEFAULT_PROFILE in profiles
        assert "dense-market" in profiles

    def test_load_default(self):
        profile = ConfigLoader.load_profile()

        assert clustering_settings(profile) == {"eps_m": 500.0, "min_pts": 3, "neighbor_index": "brute"}
        assert geocoding_settings(profile)["prefer"] == ["Lagos", "Nigeria"]

    def test_unknown_profile(self):
        with pytest.raises(FileNotFoundError, match="Available profiles: .*lagos"):
            ConfigLoader.load_profile("atlantis")

    def test_env_profile(self, monkeypatch):
        monkeypatch.setenv("RADAR_PROFILE", "dense-market")

        profile = get_config()

        assert clustering_settings(profile)["min_pts"] == 8
        assert clustering_settings(profile)["neighbor_index"] == "balltree"
        assert heatmap_settings(profile)["h3_resolution"] == 10

    def test_env_unset_falls_back_to_default(self, monkeypatch):
        monkeypatch.delenv("RADAR_PROFILE", raising=False)

        assert ConfigLoader.get_profile_from_env() is None
        assert get_config() == ConfigLoader.load_profile(DEFAULT_PROFILE)

    def test_custom_config_dir(self, tmp_path, monkeypatch):
        (tmp_path / "tiny.yaml").write_text("clustering:\n  eps_m: 75\n", encoding="utf-8")
        (tmp_path / "empty.yaml").write_text("", encoding="utf-8")
        monkeypatch.setattr(ConfigLoader, "CONFIG_DIR", tmp_path)

        assert ConfigLoader.available_profiles() == ["empty", "tiny"]
        assert clustering_settings(ConfigLoader.load_profile("tiny"))["eps_m"] == 75.0
        assert ConfigLoader.load_profile("empty") == {}


class TestSettingsDefaults:
    """Every settings helper tolerates a profile that omits its section."""

    def test_empty_profile(self):
        assert clustering_settings({}) == {"eps_m": 500.0, "min_pts": 3, "neighbor_index": "brute"}
        assert search_settings({})["radius_m"] == 5000
        assert search_settings({})["timeout_sec"] == 25
        assert geocoding_settings({})["country_codes"] is None
        assert insight_settings({})["model"] == "gemini-1.5-flash"
        assert heatmap_settings({}) == {"h3_resolution": 9}

    def test_null_sections(self):
        assert clustering_settings({"clustering": None})["min_pts"] == 3
        assert geocoding_settings({"geocoding": {"prefer": None}})["prefer"] == []
