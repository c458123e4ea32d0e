"""Heuristic document categorization and storage naming."""

from __future__ import annotations

import posixpath
import re
from typing import Mapping
from urllib.parse import unquote, urlparse

DEFAULT_FILENAME = "document.pdf"
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".heic", ".webp")

# Checked in order; the first family with a keyword in the filename wins.
CATEGORY_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("contract", ("service agreement", "service_agreement", "serviceagreement")),
    ("lease_agreement", ("lease", "rental")),
    ("ndis_plan", ("ndis", "plan")),
    ("participant_id", ("id", "license", "licence", "passport")),
    ("income_proof", ("income", "payslip", "bank")),
    ("compliance_certificate", ("compliance", "certificate")),
    ("property_photo", ("photo", "image") + IMAGE_EXTENSIONS),
    ("floor_plan", ("floor", "plan")),
)
OTHER = "other"

_WHITESPACE_RE = re.compile(r"\s+")
_BRACKETS_RE = re.compile(r"[\[\](){}]")
_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9._-]")
_UNDERSCORES_RE = re.compile(r"_+")


def categorize(
    filename: str,
    form_type: str | None,
    *,
    form_type_categories: Mapping[str, str] | None = None,
    hint: str | None = None,
) -> str:
    if form_type and form_type_categories and form_type in form_type_categories:
        return form_type_categories[form_type]

    lower_name = filename.lower()
    for category, keywords in CATEGORY_RULES:
        if any(keyword in lower_name for keyword in keywords):
            return category
    return hint or OTHER


def filename_from_url(url: str) -> str:
    try:
        path = urlparse(url).path
    except ValueError:
        return DEFAULT_FILENAME
    name = posixpath.basename(unquote(path))
    return name or DEFAULT_FILENAME


def sanitize_filename(filename: str) -> str:
    stem, dot, ext = filename.rpartition(".")
    if not dot:
        stem, ext = filename, ""
    cleaned = _WHITESPACE_RE.sub("_", stem)
    cleaned = _BRACKETS_RE.sub("", cleaned)
    cleaned = _UNSAFE_RE.sub("_", cleaned)
    cleaned = _UNDERSCORES_RE.sub("_", cleaned).strip("_")
    ext = _UNSAFE_RE.sub("", ext)
    if not cleaned:
        cleaned = "document"
    return f"{cleaned}.{ext}" if ext else cleaned


def build_storage_path(entity_type: str, entity_id: str, category: str, filename: str, millis: int) -> str:
    return f"{entity_type}/{entity_id}/{category}/{millis}_{sanitize_filename(filename)}"
