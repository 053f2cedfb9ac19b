"""Filename derivation rules

Pure helpers shared by the name generator adapter, the fallback strategies and
request validation.
"""

import os
import re
import unicodedata
from typing import Iterable, Optional

from src.domain.errors import ValidationFailure
from src.domain.media_resource import MediaResource

_INVALID_CHARS = re.compile(r"[^a-z0-9\-_]+")
_DASH_RUN = re.compile(r"-{2,}")
_SELECTED_NAME = re.compile(r"^[a-zA-Z0-9\-_]+$")

PLACEHOLDER_TITLES = frozenset({"auto draft", "untitled"})


def _strip_path_and_extension(raw: str) -> str:
    base = os.path.basename(raw.strip().replace("\\", "/"))
    stem, _ = os.path.splitext(base)
    return stem


def slugify(text: str, max_length: int = 50) -> str:
    """Lowercase ASCII slug, words joined by single dashes"""
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = _INVALID_CHARS.sub("-", normalized.lower())
    slug = _DASH_RUN.sub("-", slug).strip("-_")
    if len(slug) > max_length:
        slug = slug[:max_length].rstrip("-_")
    return slug


def sanitize_suggestion(raw: str, max_length: int = 50, min_length: int = 2) -> Optional[str]:
    """
    Normalize a generated name into a safe filename stem

    Returns None when nothing usable is left.
    """
    if not raw:
        return None
    slug = slugify(_strip_path_and_extension(raw), max_length=max_length)
    if len(slug) < min_length:
        return None
    return slug


def sanitize_suggestions(raw_names: Iterable[str], max_length: int = 50, min_length: int = 2) -> list[str]:
    seen = []
    for raw in raw_names:
        name = sanitize_suggestion(raw, max_length=max_length, min_length=min_length)
        if name and name not in seen:
            seen.append(name)
    return seen


def validate_selected_name(raw: str) -> str:
    """Validate a caller-chosen name. Raises ValidationFailure."""
    if raw is None or not str(raw).strip():
        raise ValidationFailure("Invalid selected name: name is empty")
    name = _strip_path_and_extension(str(raw))
    if not _SELECTED_NAME.match(name):
        raise ValidationFailure(
            "Invalid selected name: only letters, numbers, hyphens and underscores are allowed"
        )
    if len(name) < 2 or len(name) > 100:
        raise ValidationFailure("Invalid selected name: length must be between 2 and 100 characters")
    return name.lower()


def _metadata_sources(resource: MediaResource) -> list[str]:
    title = resource.title or ""
    if title.strip().lower() in PLACEHOLDER_TITLES:
        title = ""
    return [title, resource.alt_text or "", resource.caption or "", resource.description or ""]


def fallback_name(resource: MediaResource) -> str:
    """
    Name derived from existing metadata, used when the name generator is down

    Order: title, alt text, caption, description, current filename,
    then ``media-file-<id>``.
    """
    for source in _metadata_sources(resource) + [resource.filename or ""]:
        if not source:
            continue
        slug = slugify(source)
        if len(slug) >= 3:
            return slug
    return f"media-file-{resource.id}"


def metadata_descriptor(resource: MediaResource) -> str:
    """Plain-text description built only from catalog metadata"""
    parts = [part.strip() for part in _metadata_sources(resource) if part and part.strip()]
    if resource.tags:
        parts.append("Tags: " + ", ".join(resource.tags))
    if parts:
        return ". ".join(parts)
    file_type = (resource.mime_type or "file").split("/")[0]
    return f"{file_type} file named {resource.filename}"
