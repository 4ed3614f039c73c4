"""Embeds task metadata in the free-text description of a calendar entry."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from app.scheduling.metadata import TaskMetadata, sanitize_metadata

logger = logging.getLogger(__name__)

META_START = "---META---"
META_END = "---ENDMETA---"

_BLOCK = re.compile(re.escape(META_START) + r".*?" + re.escape(META_END), re.DOTALL)
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")


@dataclass
class DecodedDescription:
    body: str
    metadata: Optional[TaskMetadata]


def decode_description(text: Optional[str]) -> DecodedDescription:
    """Split ``text`` into its plain body and embedded metadata (first block only)."""
    text = text if isinstance(text, str) else ""
    match = _BLOCK.search(text)
    if not match:
        return DecodedDescription(body=text, metadata=None)

    block = match.group(0)
    payload = block[len(META_START):-len(META_END)].strip()
    metadata: Optional[TaskMetadata] = None
    if payload:
        try:
            metadata = sanitize_metadata(json.loads(payload))
        except (ValueError, RecursionError) as exc:
            logger.warning("Discarding unparsable metadata block: %s", exc)
            metadata = None

    body = (text[: match.start()] + text[match.end():]).rstrip()
    return DecodedDescription(body=_EXTRA_BLANK_LINES.sub("\n\n", body), metadata=metadata)


def encode_description(body: Optional[str], metadata: Optional[Mapping[str, Any]]) -> str:
    """Rebuild a description from a plain body and a metadata object."""
    plain = decode_description(body).body.rstrip()
    payload = sanitize_metadata(metadata) if metadata is not None else None
    if not payload:
        return plain
    serialized = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    prefix = f"{plain}\n\n" if plain else ""
    return f"{prefix}{META_START}\n{serialized}\n{META_END}"
