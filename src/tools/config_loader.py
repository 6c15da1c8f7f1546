"""
Configuration loader for analysis profiles and environment variables.
"""

import os
from pathlib import Path
from typing import Dict, Any, Optional
import yaml

DEFAULT_PROFILE = "lagos"
PROFILE_ENV_VAR = "RADAR_PROFILE"


class ConfigLoader:
    """Load and manage configuration from YAML files and environment."""

    CONFIG_DIR = Path(__file__).parent.parent.parent / "configs"

    @classmethod
    def available_profiles(cls) -> list:
        return sorted(f.stem for f in cls.CONFIG_DIR.glob("*.yaml"))

    @classmethod
    def load_profile(cls, profile_name: str = DEFAULT_PROFILE) -> Dict[str, Any]:
        """
        Load an analysis profile.

        Args:
            profile_name: Name of the profile (lagos, dense-market, ...)

        Returns:
            Dictionary with configuration values

        Raises:
            FileNotFoundError: If profile doesn't exist
        """
        profile_path = cls.CONFIG_DIR / f"{profile_name}.yaml"

        if not profile_path.exists():
            raise FileNotFoundError(
                f"Profile '{profile_name}' not found. "
                f"Available profiles: {', '.join(cls.available_profiles())}"
            )

        with open(profile_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def get_profile_from_env(cls) -> Optional[str]:
        """Get profile name from the RADAR_PROFILE environment variable."""
        return os.getenv(PROFILE_ENV_VAR)

    @classmethod
    def load_default_or_env_profile(cls) -> Dict[str, Any]:
        """
        Load the profile named by RADAR_PROFILE, or the lagos default.

        Returns:
            Configuration dictionary
        """
        profile = cls.get_profile_from_env() or DEFAULT_PROFILE
        return cls.load_profile(profile)


def get_config() -> Dict[str, Any]:
    """Convenience function to get current configuration."""
    return ConfigLoader.load_default_or_env_profile()


def clustering_settings(profile: Dict[str, Any]) -> Dict[str, Any]:
    """Clustering parameters with defaults for keys the profile omits."""
    cfg = profile.get("clustering", {}) or {}
    return {
        "eps_m": float(cfg.get("eps_m", 500.0)),
        "min_pts": int(cfg.get("min_pts", 3)),
        "neighbor_index": cfg.get("neighbor_index", "brute"),
    }


def search_settings(profile: Dict[str, Any]) -> Dict[str, Any]:
    cfg = profile.get("search", {}) or {}
    return {
        "radius_m": int(cfg.get("radius_m", 5000)),
        "timeout_sec": int(cfg.get("timeout_sec", 25)),
        "overpass_url": cfg.get("overpass_url", "https://overpass-api.de/api/interpreter"),
    }


def geocoding_settings(profile: Dict[str, Any]) -> Dict[str, Any]:
    cfg = profile.get("geocoding", {}) or {}
    return {
        "country_codes": cfg.get("country_codes"),
        "prefer": list(cfg.get("prefer", []) or []),
        "cache_ttl_sec": int(cfg.get("cache_ttl_sec", 3600)),
        "user_agent": cfg.get("user_agent", "retail-radar"),
    }


def insight_settings(profile: Dict[str, Any]) -> Dict[str, Any]:
    cfg = profile.get("insights", {}) or {}
    return {
        "model": cfg.get("model", "gemini-1.5-flash"),
        "temperature": float(cfg.get("temperature", 0.7)),
        "max_output_tokens": int(cfg.get("max_output_tokens", 1024)),
    }


def heatmap_settings(profile: Dict[str, Any]) -> Dict[str, Any]:
    cfg = profile.get("heatmap", {}) or {}
    return {"h3_resolution": int(cfg.get("h3_resolution", 9))}
