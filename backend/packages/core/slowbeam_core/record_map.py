"""
Notion record map traversal.

A record map is the nested-block document model of a Notion page:
``{"block": {block_id: {"value": {"type": ..., "properties": ..., "content": [...]}}}}``.
Newer API responses wrap the value one more level (``{"value": {"value": {...}}}``);
both shapes are accepted everywhere.

Text lives in ``properties[key]`` as a list of rich-text entries whose first
element is the display string. Only allow-listed keys of text-carrying block
kinds are translated; code and equations are kept verbatim.
"""

import copy
from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any

from slowbeam_core.schemas.translation import TextSegment

TEXT_PROPERTY_KEYS = ("title", "caption")

RecordMap = dict[str, Any]


class BlockKind(str, Enum):
    """Block kinds the pipeline distinguishes."""

    PARAGRAPH = "text"
    HEADING_1 = "header"
    HEADING_2 = "sub_header"
    HEADING_3 = "sub_sub_header"
    BULLETED_LIST = "bulleted_list"
    NUMBERED_LIST = "numbered_list"
    QUOTE = "quote"
    TOGGLE = "toggle"
    TO_DO = "to_do"
    CALLOUT = "callout"
    CODE = "code"
    EQUATION = "equation"
    DIVIDER = "divider"
    PAGE = "page"
    OPAQUE = "opaque"  # Any type not listed above


_KIND_BY_TYPE = {kind.value: kind for kind in BlockKind if kind is not BlockKind.OPAQUE}

# Kinds whose text must never be translated
VERBATIM_KINDS = frozenset({BlockKind.CODE, BlockKind.EQUATION})
# Kinds that carry no text
TEXTLESS_KINDS = frozenset({BlockKind.DIVIDER})


def classify_block(block_type: Any) -> BlockKind:
    """Map a raw block ``type`` to a BlockKind, OPAQUE when unrecognized."""
    if not isinstance(block_type, str):
        return BlockKind.OPAQUE
    return _KIND_BY_TYPE.get(block_type, BlockKind.OPAQUE)


def translatable_properties(kind: BlockKind) -> tuple[str, ...]:
    """Property keys whose text may be translated for a block kind."""
    if kind in VERBATIM_KINDS or kind in TEXTLESS_KINDS:
        return ()
    # Opaque blocks (images, bookmarks, embeds, ...) keep their structure
    # but still expose captions and titles.
    return TEXT_PROPERTY_KEYS


def block_value(entry: Any) -> dict[str, Any] | None:
    """Unwrap a record map block entry to its value dict."""
    if not isinstance(entry, Mapping):
        return None
    value = entry.get("value")
    if not isinstance(value, dict):
        return None
    nested = value.get("value")
    if "type" not in value and isinstance(nested, dict):
        return nested
    return value


def iter_blocks(record_map: Any) -> Iterator[tuple[str, dict[str, Any]]]:
    """Yield ``(block_id, value)`` for every well-formed block."""
    blocks = record_map.get("block") if isinstance(record_map, Mapping) else None
    if not isinstance(blocks, Mapping):
        return
    for block_id, entry in blocks.items():
        value = block_value(entry)
        if value is not None:
            yield block_id, value


def collect_text_segments(record_map: RecordMap) -> list[TextSegment]:
    """
    Collect every translatable text span of a record map.

    Segments are addressed, so their order follows the block mapping rather
    than document order. Malformed property shapes are ignored.

    Args:
        record_map: Page record map.

    Returns:
        Text segments with non-blank text.
    """
    segments: list[TextSegment] = []
    for block_id, value in iter_blocks(record_map):
        keys = translatable_properties(classify_block(value.get("type")))
        properties = value.get("properties")
        if not keys or not isinstance(properties, Mapping):
            continue

        for key in keys:
            entries = properties.get(key)
            if not isinstance(entries, list):
                continue
            for index, item in enumerate(entries):
                if not isinstance(item, list) or not item:
                    continue
                text = item[0]
                if not isinstance(text, str) or not text.strip():
                    continue
                segments.append(
                    TextSegment(block_id=block_id, property=key, index=index, text=text)
                )
    return segments


def clone_record_map(record_map: RecordMap) -> RecordMap:
    """Structural copy sharing no mutable objects with the original."""
    return copy.deepcopy(record_map)


def apply_translations(
    record_map: RecordMap,
    segments: list[TextSegment],
    translation_map: Mapping[str, str],
) -> RecordMap:
    """
    Return a translated copy of a record map.

    Each segment's text is looked up in ``translation_map`` and written to the
    same block, property and index of the clone. Segments without a
    (non-empty) translation keep their original text.

    Args:
        record_map: Source record map; never mutated.
        segments: Segments collected from ``record_map``.
        translation_map: Source text to translated text.

    Returns:
        A new record map.
    """
    clone = clone_record_map(record_map)
    blocks = clone.get("block") if isinstance(clone, dict) else None
    if not isinstance(blocks, dict):
        return clone

    for segment in segments:
        translated = translation_map.get(segment.text)
        if not translated:
            continue
        value = block_value(blocks.get(segment.block_id))
        properties = value.get("properties") if value else None
        entries = properties.get(segment.property) if isinstance(properties, dict) else None
        if not isinstance(entries, list) or segment.index >= len(entries):
            continue
        item = entries[segment.index]
        if not isinstance(item, list) or not item:
            continue
        item[0] = translated
    return clone


def rich_text_content(entries: Any) -> str:
    """Concatenate the display text of a rich-text property."""
    if not isinstance(entries, list):
        return ""
    return "".join(
        item[0] for item in entries if isinstance(item, list) and item and isinstance(item[0], str)
    )


def collect_document_texts(record_map: RecordMap, root_id: str) -> list[str]:
    """
    Collect block titles below ``root_id`` in document order.

    Verbatim kinds are included as-is; empty titles are skipped.
    """
    blocks = record_map.get("block") if isinstance(record_map, Mapping) else None
    if not isinstance(blocks, Mapping):
        return []

    texts: list[str] = []
    visited: set[str] = set()

    def visit(block_id: str) -> None:
        if block_id in visited:
            return
        visited.add(block_id)
        value = block_value(blocks.get(block_id))
        if value is None:
            return
        properties = value.get("properties")
        if isinstance(properties, Mapping):
            text = rich_text_content(properties.get("title")).strip()
            if text:
                texts.append(text)
        children = value.get("content")
        if isinstance(children, list):
            for child_id in children:
                if isinstance(child_id, str):
                    visit(child_id)

    root = block_value(blocks.get(root_id))
    visited.add(root_id)
    for child_id in (root or {}).get("content") or []:
        if isinstance(child_id, str):
            visit(child_id)
    return texts
