"""
Configuration management and loading.

Handles rate limits, cache TTLs, upstream settings and the database path.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from volcano_studio.storage.db import default_db_path

MINUTE_MS = 60 * 1000
DAY_MS = 24 * 60 * MINUTE_MS

DEFAULT_USER_AGENT = "VolcanoStudio/1.0"
DEFAULT_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class FeatureConfig:
    """Admission window and cache TTL for one lookup feature."""
    window_ms: int
    max_requests: int
    ttl_ms: Optional[int] = None

    def __post_init__(self):
        """Validate limits are positive."""
        if self.window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        if self.max_requests <= 0:
            raise ValueError("max_requests must be > 0")
        if self.ttl_ms is not None and self.ttl_ms < 0:
            raise ValueError("ttl_ms must be >= 0")


@dataclass(frozen=True)
class UpstreamConfig:
    """Settings for the HTTP upstream client."""
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")


DEFAULT_FEATURES: Dict[str, FeatureConfig] = {
    "discover": FeatureConfig(MINUTE_MS, 90, DAY_MS),
    "dictionary": FeatureConfig(MINUTE_MS, 30, 7 * DAY_MS),
    "wikipedia_search": FeatureConfig(MINUTE_MS, 30, DAY_MS),
    "wikipedia_summary": FeatureConfig(MINUTE_MS, 30, 7 * DAY_MS),
    "wikidata_search": FeatureConfig(MINUTE_MS, 20, 7 * DAY_MS),
    "wikidata_attributes": FeatureConfig(MINUTE_MS, 20, 14 * DAY_MS),
    "conceptnet": FeatureConfig(MINUTE_MS, 20, 3 * DAY_MS),
    "projects": FeatureConfig(MINUTE_MS, 60),
}


@dataclass(frozen=True)
class StudioConfig:
    """Complete studio configuration."""
    db_path: str
    upstream: UpstreamConfig
    features: Dict[str, FeatureConfig]

    def get_feature_config(self, feature: str) -> FeatureConfig:
        """Get configuration for a feature.

        Raises:
            KeyError: If the feature is unknown
        """
        return self.features[feature]


def default_studio_config() -> StudioConfig:
    """Built-in configuration; honors VOLCANO_DB_PATH."""
    return StudioConfig(
        db_path=default_db_path(),
        upstream=UpstreamConfig(),
        features=dict(DEFAULT_FEATURES),
    )


def load_studio_config(path: str) -> StudioConfig:
    """Load and validate studio configuration from a YAML file.

    Sections and features not named in the file keep their defaults. Unknown
    keys are rejected so a typo never silently disables a limit.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated StudioConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Studio config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    _check_keys(raw_config, {'database', 'upstream', 'features'}, "configuration")
    config = default_studio_config()

    if 'database' in raw_config:
        database = _section(raw_config, 'database')
        _check_keys(database, {'path'}, "database")
        db_path = database.get('path')
        if not isinstance(db_path, str) or not db_path.strip():
            raise ValueError("'database.path' must be a non-empty string")
        # environment still wins, so deployments can relocate the file
        config = replace(config, db_path=os.environ.get("VOLCANO_DB_PATH") or db_path)

    if 'upstream' in raw_config:
        upstream = _section(raw_config, 'upstream')
        _check_keys(upstream, {'timeout_seconds', 'user_agent'}, "upstream")
        timeout = upstream.get('timeout_seconds', config.upstream.timeout_seconds)
        if not _is_number(timeout) or timeout <= 0:
            raise ValueError("'upstream.timeout_seconds' must be > 0")
        user_agent = upstream.get('user_agent', config.upstream.user_agent)
        if not isinstance(user_agent, str) or not user_agent.strip():
            raise ValueError("'upstream.user_agent' must be a non-empty string")
        config = replace(config, upstream=UpstreamConfig(float(timeout), user_agent))

    if 'features' in raw_config:
        features_data = _section(raw_config, 'features')
        features = dict(config.features)
        for name, feature_data in features_data.items():
            if name not in features:
                raise ValueError(f"Unknown feature: {name}")
            if not isinstance(feature_data, dict):
                raise ValueError(f"Feature '{name}' must be a dictionary")
            features[name] = _parse_feature_config(feature_data, features[name], f"features.{name}")
        config = replace(config, features=features)

    return config


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = raw[name]
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    return section


def _check_keys(data: Dict[str, Any], allowed: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_feature_config(data: Dict[str, Any], default: FeatureConfig, path: str) -> FeatureConfig:
    """Parse one feature section on top of its default.

    Args:
        data: Feature configuration data
        default: Built-in values for this feature
        path: Path for error messages

    Returns:
        Validated FeatureConfig

    Raises:
        ValueError: If configuration is invalid
    """
    _check_keys(data, {'window_ms', 'max_requests', 'ttl_ms'}, path)

    for key in ('window_ms', 'max_requests'):
        if key in data and (not isinstance(data[key], int) or isinstance(data[key], bool) or data[key] <= 0):
            raise ValueError(f"'{key}' in {path} must be a positive integer")

    if 'ttl_ms' in data and data['ttl_ms'] is not None:
        if not isinstance(data['ttl_ms'], int) or isinstance(data['ttl_ms'], bool) or data['ttl_ms'] < 0:
            raise ValueError(f"'ttl_ms' in {path} must be a non-negative integer")

    return FeatureConfig(
        window_ms=data.get('window_ms', default.window_ms),
        max_requests=data.get('max_requests', default.max_requests),
        ttl_ms=data.get('ttl_ms', default.ttl_ms),
    )
