"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from intake.common.errors import ConfigError
from intake.common.fs import read_yaml
from intake.common.schema import validate_forms_config, validate_settings_config


@dataclass(frozen=True)
class ConfigBundle:
    settings: dict
    forms: dict

    def form_registry(self) -> dict[str, str]:
        registry: dict[str, str] = {}
        for entity_type, form_ids in self.forms["form_types"].items():
            for form_id in form_ids:
                registry[str(form_id)] = entity_type
        return registry

    def form_ids_for(self, entity_type: str | None) -> list[str]:
        if entity_type is None:
            return [str(f) for ids in self.forms["form_types"].values() for f in ids]
        return [str(f) for f in self.forms["form_types"].get(entity_type, [])]

    def api_key(self) -> str:
        env_name = self.settings["api"]["api_key_env"]
        value = os.environ.get(env_name)
        if not value:
            raise ConfigError(f"Forms API key not configured: set {env_name}")
        return value


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def load_all_configs(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    def overlay_for(name: str) -> Path | None:
        if overlay_config_dir is None:
            return None
        return overlay_config_dir / name

    settings = validate_settings_config(
        _load_yaml_with_overlay(config_dir / "settings.yml", overlay_for("settings.yml")),
        allow_unknown=allow_unknown,
    )
    forms = validate_forms_config(
        _load_yaml_with_overlay(config_dir / "forms.yml", overlay_for("forms.yml")),
        allow_unknown=allow_unknown,
    )
    return ConfigBundle(settings=settings, forms=forms)
