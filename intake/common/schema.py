"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from intake.common.constants import ENTITY_TYPES
from intake.common.errors import ConfigError


def _assert_mapping(obj, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    _assert_mapping(obj, ctx)
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_entity_keys(obj: dict, ctx: str) -> None:
    unknown = set(obj) - set(ENTITY_TYPES)
    if unknown:
        raise ConfigError(f"Unknown entity types in {ctx}: {', '.join(sorted(unknown))}")


def validate_settings_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top = {"api", "rate_limits", "storage", "files"}
    _assert_required_keys(cfg, top, "settings")
    _assert_no_unknown_keys(cfg, top, "settings", allow_unknown)

    _assert_required_keys(cfg["api"], {"base_url", "api_key_env", "page_size", "timeout_seconds"}, "api")
    if int(cfg["api"]["page_size"]) <= 0:
        raise ConfigError("api.page_size must be positive")

    _assert_mapping(cfg["rate_limits"], "rate_limits")
    for category, interval in cfg["rate_limits"].items():
        if not isinstance(interval, (int, float)) or interval < 0:
            raise ConfigError(f"rate_limits.{category} must be a non-negative number of seconds")

    _assert_required_keys(cfg["storage"], {"bucket"}, "storage")
    _assert_required_keys(
        cfg["files"],
        {"download_timeout_seconds", "categorization_confidence"},
        "files",
    )
    return cfg


def validate_forms_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top = {"form_types", "keywords", "form_type_categories"}
    _assert_required_keys(cfg, top, "forms")
    _assert_no_unknown_keys(cfg, top, "forms", allow_unknown)

    _assert_mapping(cfg["form_types"], "form_types")
    _assert_entity_keys(cfg["form_types"], "form_types")
    seen: dict[str, str] = {}
    for entity_type, form_ids in cfg["form_types"].items():
        if not isinstance(form_ids, list):
            raise ConfigError(f"form_types.{entity_type} must be a list")
        for form_id in form_ids:
            form_id = str(form_id)
            if form_id in seen and seen[form_id] != entity_type:
                raise ConfigError(f"Form {form_id} mapped to both {seen[form_id]} and {entity_type}")
            seen[form_id] = entity_type

    _assert_mapping(cfg["keywords"], "keywords")
    _assert_entity_keys(cfg["keywords"], "keywords")
    _assert_mapping(cfg["form_type_categories"], "form_type_categories")
    _assert_entity_keys(cfg["form_type_categories"], "form_type_categories")
    return cfg
