"""
Config Manager

Loads the YAML run configuration (with include support) and turns it into a
validated GameConfig.
"""

import dataclasses
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from models.config import GameConfig
from models.errors import ConfigError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CONFIG)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "pongwars.yaml"


class ConfigManager:
    """
    Example:
        manager = ConfigManager()
        manager.load()
        config = manager.build(fps=20, dual_mode=True)
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: YAML file to load; None uses src/config/pongwars.yaml
                         and falls back to built-in defaults if it is missing
        """
        self.explicit = config_path is not None
        self.config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
        self.data: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        """
        Load YAML configuration.

        Process:
        1. Load the main file
        2. If it has an 'include:' list, merge those files (relative to it)
           underneath the main file's own sections
        3. A missing default file means built-in defaults

        Raises:
            ConfigError: explicit file missing, unreadable or malformed
        """
        if not self.config_path.exists():
            if self.explicit:
                raise ConfigError(f"Config file not found: {self.config_path}", path=str(self.config_path))
            log.warn("Config file not found, using built-in defaults", path=str(self.config_path))
            self.data = {}
            return self.data

        main_config = self._read_yaml(self.config_path)

        if "include" in main_config:
            merged = self._load_with_includes(main_config["include"], self.config_path.parent)
            for section, values in main_config.items():
                if section == "include":
                    continue
                if isinstance(values, dict) and isinstance(merged.get(section), dict):
                    merged[section] = {**merged[section], **values}
                else:
                    merged[section] = values
            self.data = merged
        else:
            self.data = main_config

        log.info("Configuration loaded", path=str(self.config_path), sections=str(sorted(self.data)))
        return self.data

    def build(self, **overrides) -> GameConfig:
        """
        GameConfig from the loaded data with CLI overrides applied.

        Overrides with value None are ignored.
        """
        base = GameConfig.from_dict(self.data)
        changes = {k: v for k, v in overrides.items() if v is not None}
        unknown = set(changes) - {f.name for f in dataclasses.fields(GameConfig)}
        if unknown:
            raise ConfigError("unknown override", keys=sorted(unknown))

        config = dataclasses.replace(base, **changes).validate()
        if changes:
            log.debug("Applied overrides", **{k: str(v) for k, v in changes.items()})
        return config

    def _load_with_includes(self, include_list: List[str], config_dir: Path) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}

        if not isinstance(include_list, list):
            raise ConfigError("'include' must be a list of file names")

        for filename in include_list:
            file_data = self._read_yaml(config_dir / filename)
            merged.update(file_data)
            log.info(f"Loaded {filename}", keys=str(list(file_data.keys())))

        return merged

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError as ex:
            raise ConfigError(f"Config file not found: {path}", path=str(path)) from ex
        except (OSError, yaml.YAMLError) as ex:
            raise ConfigError(f"Failed to read {path.name}: {ex}", path=str(path)) from ex

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path.name} must contain a mapping", path=str(path))
        return data
