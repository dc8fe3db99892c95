"""
Configuration management system for the Vehicle Deal Filter.
"""

import json
import os
import re
from typing import Any, Dict, Optional

import yaml

from ..models.config import (
    Configuration,
    ExtractionConfig,
    HotDealConfig,
    ListingFilterConfig,
    SamplingConfig,
    StorageConfig,
    SystemConfig,
    default_sqlite_path,
)
from ..utils.error_handling import ConfigurationError

ENV_VAR_RX = re.compile(r"\$\{([^}]+)\}")

CONFIG_SEARCH_PATHS = [
    "config/config.yaml",
    "config/config.yml",
    "config/config.json",
    "config.yaml",
    "config.yml",
    "config.json",
]


class ConfigurationManager:
    """Manages loading, validation, and reloading of system configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file. If None, standard
                locations are searched and built-in defaults are used when
                none exists.
        """
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Configuration] = None
        self._last_modified: Optional[float] = None

    def _find_config_file(self) -> Optional[str]:
        """Find the configuration file in standard locations."""
        for path in CONFIG_SEARCH_PATHS:
            if os.path.exists(path):
                return path
        return None

    def load_config(self) -> Configuration:
        """
        Load configuration from file.

        Returns:
            Configuration object with validated settings.

        Raises:
            ConfigurationError: If configuration is invalid or file cannot be read.
        """
        if self.config_path is None:
            config = Configuration()
            config.validate()
            self._config = config
            return config

        if not os.path.exists(self.config_path):
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        raw_config = self._read_file(self.config_path)
        raw_config = self._expand_env_vars(raw_config)

        config = self._parse_config(raw_config)
        config.validate()

        self._config = config
        self._last_modified = os.path.getmtime(self.config_path)

        return config

    def _read_file(self, path: str) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.endswith(".json"):
                    raw_config = json.load(f)
                else:
                    raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Error reading configuration file: {e}") from e

        if raw_config is None:
            return {}
        if not isinstance(raw_config, dict):
            raise ConfigurationError("Configuration file must contain a mapping")
        return raw_config

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand ${VAR_NAME} references in configuration."""
        if isinstance(obj, dict):
            return {key: self._expand_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._expand_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            return ENV_VAR_RX.sub(self._env_value, obj)
        else:
            return obj

    @staticmethod
    def _env_value(match) -> str:
        var_name = match.group(1)
        env_value = os.getenv(var_name)
        if env_value is None:
            raise ConfigurationError(f"Environment variable '{var_name}' not found")
        return env_value

    def _parse_config(self, raw_config: Dict[str, Any]) -> Configuration:
        """Parse raw configuration dictionary into Configuration object."""
        try:
            hot_data = raw_config.get("hot_deals") or {}
            defaults = HotDealConfig()
            hot_deals = HotDealConfig(
                min_samples=hot_data.get("min_samples", defaults.min_samples),
                discount_standard=hot_data.get("discount_standard", defaults.discount_standard),
                discount_weak=hot_data.get("discount_weak", defaults.discount_weak),
                market_freshness_minutes=hot_data.get(
                    "market_freshness_minutes", defaults.market_freshness_minutes
                ),
                hard_cap_rules={
                    str(key).strip().lower(): value
                    for key, value in (hot_data.get("hard_cap_rules") or {}).items()
                },
                fallback_chain=list(hot_data.get("fallback_chain") or defaults.fallback_chain),
            )

            sampling_data = raw_config.get("sampling") or {}
            sampling = SamplingConfig(
                min_group_size=sampling_data.get("min_group_size", 5),
                max_samples_per_group=sampling_data.get("max_samples_per_group", 200),
                refresh_from_batch=bool(sampling_data.get("refresh_from_batch", True)),
            )

            filter_data = raw_config.get("filters") or {}
            filters = ListingFilterConfig(
                price_min=filter_data.get("price_min"),
                price_max=filter_data.get("price_max"),
                fresh_days=filter_data.get("fresh_days"),
                fresh_minutes=filter_data.get("fresh_minutes"),
            )

            extraction_data = raw_config.get("extraction") or {}
            extraction = ExtractionConfig(
                brand_aliases={
                    str(alias).lower(): str(brand).lower()
                    for alias, brand in (extraction_data.get("brand_aliases") or {}).items()
                },
                stop_words=[str(word).lower() for word in extraction_data.get("stop_words") or []],
                fuel_keywords={
                    str(fuel).lower(): [str(word).lower() for word in words]
                    if isinstance(words, list)
                    else words
                    for fuel, words in (extraction_data.get("fuel_keywords") or {}).items()
                },
            )

            storage_data = raw_config.get("storage") or {}
            storage = StorageConfig(
                type=storage_data.get("type", "sqlite"),
                sqlite_path=storage_data.get("sqlite_path") or default_sqlite_path(),
            )

            system_data = raw_config.get("system") or {}
            system = SystemConfig(
                log_dir=system_data.get("log_dir", "logs"),
                log_level=str(system_data.get("log_level", "INFO")),
            )

            return Configuration(
                hot_deals=hot_deals,
                sampling=sampling,
                filters=filters,
                extraction=extraction,
                storage=storage,
                system=system,
            )

        except (AttributeError, TypeError) as e:
            raise ConfigurationError(f"Error parsing configuration: {e}") from e

    def get_config(self) -> Configuration:
        """
        Get current configuration, loading if necessary.

        Returns:
            Current configuration object.
        """
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_if_changed(self) -> bool:
        """
        Reload configuration if file has been modified.

        Returns:
            True if configuration was reloaded, False otherwise.
        """
        if self.config_path is None or not os.path.exists(self.config_path):
            return False

        current_modified = os.path.getmtime(self.config_path)

        if self._last_modified is None or current_modified > self._last_modified:
            try:
                self.load_config()
                return True
            except ConfigurationError:
                # If reload fails, keep current config
                return False

        return False

    def validate_config_file(self, config_path: str) -> bool:
        """
        Validate a configuration file without loading it.

        Args:
            config_path: Path to configuration file to validate.

        Returns:
            True if configuration is valid.

        Raises:
            ConfigurationError: If configuration is invalid.
        """
        if not os.path.exists(config_path):
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        raw_config = self._read_file(config_path)

        # Missing environment variables are not a validation failure
        try:
            raw_config = self._expand_env_vars(raw_config)
        except ConfigurationError:
            pass

        config = self._parse_config(raw_config)
        config.validate()

        return True

    def get_config_template(self) -> Dict[str, Any]:
        """
        Get a template configuration dictionary.

        Returns:
            Dictionary with example configuration structure.
        """
        return {
            "hot_deals": {
                "min_samples": 10,
                "discount_standard": 0.15,
                "discount_weak": 0.22,
                "market_freshness_minutes": 120,
                "hard_cap_rules": {
                    "default": 60000,
                    "volkswagen golf": 45000,
                },
                "fallback_chain": ["full", "no_mileage", "model_fuel", "model"],
            },
            "sampling": {
                "min_group_size": 5,
                "max_samples_per_group": 200,
                "refresh_from_batch": True,
            },
            "filters": {
                "price_min": 5000,
                "price_max": 80000,
                "fresh_days": 2,
            },
            "extraction": {
                "brand_aliases": {"vw": "volkswagen"},
                "stop_words": ["okazja"],
                "fuel_keywords": {"hybrid": ["phev"]},
            },
            "storage": {
                "type": "sqlite",
                "sqlite_path": "${SQLITE_PATH}",
            },
            "system": {
                "log_dir": "logs",
                "log_level": "INFO",
            },
        }
