"""
Loads, migrates and saves the INI configuration file.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from appstore_cli.exceptions import ConfigurationError
from appstore_cli.models.config import ClientConfig

log = logging.getLogger(__name__)

SECTION = "DEFAULT"


class ConfigManager:
    """Reads and writes the ``[DEFAULT]`` section of the client's INI file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path

    def load_config(self, cli_options: dict[str, Any] | None = None) -> ClientConfig:
        """
        Builds a validated `ClientConfig` from the file and command-line overrides.

        A missing file is not an error: defaults are used and nothing is written.
        Keys missing from an existing file are added with their default values.

        Raises:
            ConfigurationError: If the file cannot be parsed or a value is invalid.
        """
        values: dict[str, Any] = {}
        if self.config_file_path.is_file():
            parser = self._read()
            if self._migrate(parser):
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            # Strings are coerced and range-checked by the model validators.
            section = parser[SECTION]
            values = {k: section[k] for k in ClientConfig.get_ini_keys() if k in section}

        values.update(cli_options or {})
        try:
            return ClientConfig(
                **values, config_path=str(self.config_file_path.parent)
            )
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration in {self.config_file_path}:\n{e}"
            ) from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """Writes a complete file, taking unspecified keys from the defaults."""
        defaults = ClientConfig()
        parser = configparser.ConfigParser(interpolation=None)
        parser[SECTION] = {
            key: str(settings.get(key, getattr(defaults, key)))
            for key in sorted(ClientConfig.get_ini_keys())
        }
        try:
            self._write(parser)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _read(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None)
        try:
            parser.read(self.config_file_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e
        return parser

    def _migrate(self, parser: configparser.ConfigParser) -> bool:
        """Fills in keys added since the file was written; True if it changed."""
        defaults = ClientConfig()
        section = parser[SECTION]
        missing = sorted(ClientConfig.get_ini_keys() - set(section))
        if not missing:
            return False

        for key in missing:
            section[key] = str(getattr(defaults, key))
            log.debug(f"Migrating config: added '{key}' = '{section[key]}'")
        try:
            self._write(parser)
        except OSError as e:
            log.error(f"Could not save migrated configuration file: {e}")
            return False
        return True

    def _write(self, parser: configparser.ConfigParser) -> None:
        self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.config_file_path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            parser.write(f)
        os.replace(temp_path, self.config_file_path)
