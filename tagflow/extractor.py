"""
Tag extraction from raw note text.

A note's tags come from two places: inline ``#tag`` tokens and the
``tags`` field of a YAML front matter block. Generated list regions are
removed first so a note is never tagged by its own backlink output.
"""

import logging
import re
from typing import Any, Optional

import yaml

from .types import TAG_MARKER

logger = logging.getLogger(__name__)

# Any generated region, whatever its tag and id
_REGION_RE = re.compile(
    r"<!--tag-list\s[^>]+-->.*?<!--end-tag-list\s[^>]+-->",
    re.DOTALL,
)

_INLINE_TAG_RE = re.compile(r"#[a-zA-Z0-9_-]+")

_FRONTMATTER_RE = re.compile(r"\A---\r?\n(.*?)\r?\n---(?:\r?\n|\Z)", re.DOTALL)


def strip_regions(text: str) -> str:
    """Remove every generated region (anchors included)."""
    return _REGION_RE.sub("", text)


def parse_frontmatter(text: str) -> Optional[dict]:
    """
    Parse the front matter block at the very top of ``text``.

    Returns:
        The mapping, or None when there is no block, the block is not a
        mapping, or it fails to parse (logged).
    """
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return None
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.warning("Malformed front matter, ignoring its tags: %s", e)
        return None
    if not isinstance(data, dict):
        return None
    return data


def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value).strip()


def frontmatter_tags(frontmatter: Optional[dict]) -> list[str]:
    """Tags declared by a front matter ``tags`` field, with the marker."""
    if not frontmatter:
        return []
    raw = frontmatter.get("tags")
    if isinstance(raw, str):
        names = [part.strip() for part in raw.split(",")]
    elif isinstance(raw, list):
        names = [
            _scalar_text(v) for v in raw
            if not isinstance(v, (dict, list))
        ]
    else:
        if raw is not None:
            logger.debug("Front matter tags is neither a string nor a list: %r", raw)
        return []
    return [TAG_MARKER + name for name in names if name]


def inline_tags(text: str) -> list[str]:
    return _INLINE_TAG_RE.findall(text)


def extract_tags(text: str) -> set[str]:
    """Effective tag set of a note."""
    cleaned = strip_regions(text)
    tags = set(inline_tags(cleaned))
    tags.update(frontmatter_tags(parse_frontmatter(cleaned)))
    return tags
