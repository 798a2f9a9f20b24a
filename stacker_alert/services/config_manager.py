"""
Configuration management for Stacker Alert.

Settings come from an optional YAML file and from command-line flags; flags
win over file values. The result is one validated Configuration built at
startup and passed to every component.
"""

import os
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from ..models.config import (
    DEFAULT_BASE_URL,
    DEFAULT_ITEM_SELECTOR,
    DEFAULT_RELAYS,
    Configuration,
    NostrIdentity,
)
from ..models.criteria import CriteriaSet
from ..utils.error_handling import ConfigurationError


def split_terms(value: Union[None, str, Iterable[str]]) -> List[str]:
    """Accept a comma-separated string or a list of strings."""
    if value is None:
        return []

    if isinstance(value, str):
        items = value.split(",")
    else:
        items = [str(item) for item in value]

    return [item.strip() for item in items if item and item.strip()]


class ConfigurationManager:
    """Loads, merges and validates the system configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to an optional YAML configuration file.
        """
        self.config_path = config_path
        self._config: Optional[Configuration] = None

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> Configuration:
        """
        Build the configuration from file and command-line overrides.

        Args:
            overrides: Flat mapping of flag values; None values are ignored.

        Returns:
            Validated Configuration.

        Raises:
            ConfigurationError: If the configuration is incomplete or invalid.
        """
        raw_config = self._read_file() if self.config_path else {}
        raw_config = self._expand_env_vars(raw_config)

        config = self._parse_config(raw_config, overrides or {})

        try:
            config.validate()
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        self._config = config
        return config

    def get_config(self) -> Configuration:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            return self.load_config()
        return self._config

    def _read_file(self) -> Dict[str, Any]:
        if not os.path.exists(self.config_path):
            raise ConfigurationError(
                f"Configuration file not found: {self.config_path}"
            )

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e

        if raw_config is None:
            return {}
        if not isinstance(raw_config, dict):
            raise ConfigurationError("Configuration file must contain a mapping")

        return raw_config

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand ${VAR_NAME} values."""
        if isinstance(obj, dict):
            return {key: self._expand_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._expand_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            if obj.startswith("${") and obj.endswith("}"):
                var_name = obj[2:-1]
                env_value = os.getenv(var_name)
                if env_value is None:
                    raise ConfigurationError(
                        f"Environment variable '{var_name}' not found"
                    )
                return env_value
            return obj
        else:
            return obj

    def _parse_config(
        self, raw_config: Dict[str, Any], overrides: Dict[str, Any]
    ) -> Configuration:
        """Merge file sections with flag overrides into a Configuration."""

        def pick(key: str, section: Dict[str, Any], file_key: str, default=None):
            value = overrides.get(key)
            if value is not None:
                return value
            value = section.get(file_key)
            return default if value is None else value

        criteria_data = raw_config.get("criteria") or {}
        source_data = raw_config.get("source") or {}
        polling_data = raw_config.get("polling") or {}
        nostr_data = raw_config.get("nostr") or {}
        logging_data = raw_config.get("logging") or {}

        criteria = CriteriaSet.from_lists(
            authors=split_terms(pick("authors", criteria_data, "authors")),
            topics=split_terms(pick("topics", criteria_data, "topics")),
            domains=split_terms(pick("domains", criteria_data, "domains")),
            muted=split_terms(pick("mute", criteria_data, "mute")),
            bidirectional=bool(
                pick("bidirectional", criteria_data, "bidirectional", False)
            ),
        )
        if not criteria.has_filters():
            raise ConfigurationError(
                "You need to give me some filters!", show_usage=True
            )

        nostr = self._parse_nostr(
            pick("nostr_from", nostr_data, "from", ""),
            pick("nostr_to", nostr_data, "to", ""),
            split_terms(pick("nostr_relays", nostr_data, "relays"))
            or list(DEFAULT_RELAYS),
        )

        try:
            interval = int(pick("interval", polling_data, "interval_minutes", 5))
            timeout = int(pick("request_timeout", source_data, "request_timeout", 30))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        return Configuration(
            criteria=criteria,
            territory=str(pick("territory", source_data, "territory", "")).strip(),
            interval_minutes=interval,
            base_url=pick("base_url", source_data, "base_url", DEFAULT_BASE_URL),
            item_selector=pick(
                "item_selector", source_data, "item_selector", DEFAULT_ITEM_SELECTOR
            ),
            request_timeout=timeout,
            nostr=nostr,
            log_level=str(pick("log_level", logging_data, "level", "INFO")).upper(),
            log_dir=pick("log_dir", logging_data, "dir"),
        )

    def _parse_nostr(
        self, private_key: str, recipient: str, relays: List[str]
    ) -> Optional[NostrIdentity]:
        """Both keys or neither; a single key is a configuration error."""
        private_key = (private_key or "").strip()
        recipient = (recipient or "").strip()

        if not private_key and not recipient:
            return None

        if not private_key or not recipient:
            raise ConfigurationError("You must provide both -nostr-from and -nostr-to")

        return NostrIdentity(
            private_key_hex=private_key,
            recipient_pubkey_hex=recipient,
            relays=tuple(relays),
        )
