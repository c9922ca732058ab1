"""Configuration loading helpers for Auto-Shelf."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import yaml

from .models import ShelfConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_FILENAME = "auto_shelf.yaml"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Malformed YAML in {path}: {exc}") from exc
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    config_dir: Path | None = None

    def __post_init__(self) -> None:
        root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.config_dir = (root / "config").resolve()

    def config_path(self) -> Path:
        return self.config_dir / CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None, path: Path | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self.path = path or self.locator.config_path()
        if self.path.suffix not in CONFIG_EXTENSIONS:
            raise ValueError(f"Unsupported configuration file type: {self.path.suffix}")

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> ShelfConfig:
        """Read the config file, writing defaults first when it is missing."""

        if not self.path.exists():
            config = ShelfConfig()
            self.save(config)
            return config
        return ShelfConfig.model_validate(_read_file(self.path))

    def save(self, config: ShelfConfig) -> Path:
        _write_file(self.path, config.model_dump(mode="json"))
        return self.path


__all__ = ["ConfigLocator", "ConfigRepository", "CONFIG_EXTENSIONS", "CONFIG_FILENAME"]
