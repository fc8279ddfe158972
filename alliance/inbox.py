"""Query files: frontmatter parsing, inbox scanning, and archive logic."""

import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import frontmatter

from alliance.models import Query

# Frontmatter keys that map onto Query fields or CLI-level overrides.
# Anything else is carried through as Query.metadata.
_RESERVED_KEYS = {"context", "rounds", "threshold", "consensus", "show_debate", "timeout_ms", "models", "mode"}


@dataclass
class QueryFile:
    path: Path
    query: Query
    models: str | None = None   # comma-separated panel override
    mode: str | None = None     # collaboration mode override


def ensure_dirs(inbox_dir: Path, archive_dir: Path) -> None:
    """Create inbox and archive directories if they don't exist."""
    inbox_dir.mkdir(parents=True, exist_ok=True)
    archive_dir.mkdir(parents=True, exist_ok=True)


def scan_inbox(inbox_dir: Path) -> list[Path]:
    """Return all .md files in inbox_dir, sorted by mtime ascending (oldest first)."""
    files = list(inbox_dir.glob("*.md"))
    return sorted(files, key=lambda p: p.stat().st_mtime)


def parse_file(file_path: Path) -> tuple[str, dict[str, Any]]:
    """Parse a markdown file with optional YAML frontmatter.

    Returns:
        (content, metadata) where content is the body text. If there is no
        frontmatter, metadata is {}.
    """
    post = frontmatter.load(str(file_path))
    content = post.content.strip()
    metadata = dict(post.metadata)
    return content, metadata


def _int_field(meta: dict[str, Any], key: str) -> int | None:
    value = meta.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"Frontmatter '{key}' must be a whole number, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Frontmatter '{key}' must be a whole number, got {value!r}") from None


def _float_field(meta: dict[str, Any], key: str) -> float | None:
    value = meta.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Frontmatter '{key}' must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Frontmatter '{key}' must be a number, got {value!r}") from None


def _bool_field(meta: dict[str, Any], key: str, default: bool) -> bool:
    value = meta.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Frontmatter '{key}' must be true or false, got {value!r}")
    return value


def _str_field(meta: dict[str, Any], key: str) -> str | None:
    value = meta.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _models_field(meta: dict[str, Any]) -> str | None:
    value = meta.get("models")
    if isinstance(value, list):
        return ",".join(str(v) for v in value) or None
    return _str_field(meta, "models")


def parse_query_file(
    file_path: Path,
    *,
    require_consensus: bool = True,
    show_debate: bool = False,
) -> QueryFile:
    """Build a Query from a markdown file; frontmatter values override the given defaults.

    Raises:
        ValueError: If the body is empty, or an override has the wrong type or is out of range.
    """
    content, meta = parse_file(file_path)
    extra = {k: v for k, v in meta.items() if k not in _RESERVED_KEYS}
    extra["source"] = str(file_path)

    query = Query(
        prompt=content,
        context=_str_field(meta, "context"),
        require_consensus=_bool_field(meta, "consensus", require_consensus),
        show_debate=_bool_field(meta, "show_debate", show_debate),
        max_debate_rounds=_int_field(meta, "rounds"),
        voting_threshold=_float_field(meta, "threshold"),
        timeout_ms=_int_field(meta, "timeout_ms"),
        metadata=extra,
    )
    return QueryFile(
        path=file_path,
        query=query,
        models=_models_field(meta),
        mode=_str_field(meta, "mode"),
    )


def archive_file(file_path: Path, archive_dir: Path, *, failed: bool = False) -> Path:
    """Move file to archive_dir with a timestamp prefix.

    Args:
        file_path: Source file to archive.
        archive_dir: Destination directory.
        failed: If True, prefix filename with "FAILED_".

    Returns:
        Path to the archived file.
    """
    timestamp = datetime.now().strftime("%Y-%m-%dT%H%M")
    prefix = "FAILED_" if failed else ""
    dest_name = f"{prefix}{timestamp}_{file_path.name}"
    dest = archive_dir / dest_name
    shutil.move(str(file_path), str(dest))
    return dest
