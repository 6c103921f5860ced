"""
Notion page property decoding.

Database rows in a record map store their property values as rich-text
arrays keyed by schema property id. This module turns them into a plain
dict keyed by the schema's property names.
"""

from typing import Any

from slowbeam_core.record_map import rich_text_content


def _split_options(text: str) -> list[str]:
    return [option.strip() for option in text.split(",") if option.strip()]


def _decorations(raw: Any) -> list[list[Any]]:
    """Yield the decoration lists (``item[1]``) of a rich-text array."""
    decorations: list[list[Any]] = []
    if not isinstance(raw, list):
        return decorations
    for item in raw:
        if isinstance(item, list) and len(item) > 1 and isinstance(item[1], list):
            decorations.extend(d for d in item[1] if isinstance(d, list) and d)
    return decorations


def _decode_date(raw: Any) -> dict[str, Any] | None:
    for decoration in _decorations(raw):
        if decoration[0] == "d" and len(decoration) > 1 and isinstance(decoration[1], dict):
            date = {k: v for k, v in decoration[1].items() if k != "type"}
            return date
    return None


def _decode_people(raw: Any) -> list[dict[str, Any]]:
    return [
        {"id": decoration[1]}
        for decoration in _decorations(raw)
        if decoration[0] == "u" and len(decoration) > 1
    ]


def _decode_file(raw: Any) -> str | None:
    for decoration in _decorations(raw):
        if decoration[0] == "a" and len(decoration) > 1 and isinstance(decoration[1], str):
            return decoration[1]
    return None


def decode_property(kind: str, raw: Any) -> Any:
    """
    Decode one property value.

    Args:
        kind: Schema property type ("title", "select", "date", ...).
        raw: Rich-text array from the page's ``properties``.

    Returns:
        Decoded value; None when the value cannot be decoded.
    """
    text = rich_text_content(raw)
    if kind in ("select", "multi_select"):
        return _split_options(text)
    if kind == "date":
        return _decode_date(raw)
    if kind == "checkbox":
        return text == "Yes"
    if kind == "person":
        return _decode_people(raw)
    if kind == "file":
        return _decode_file(raw)
    return text


def get_page_properties(value: dict[str, Any], schema: dict[str, Any]) -> dict[str, Any]:
    """
    Decode every schema property present on a page.

    Args:
        value: Page block value.
        schema: Collection schema mapping property id to ``{name, type}``.

    Returns:
        Mapping of property name to decoded value.
    """
    properties = value.get("properties")
    if not isinstance(properties, dict):
        return {}

    decoded: dict[str, Any] = {}
    for property_id, raw in properties.items():
        prop_schema = schema.get(property_id)
        if not isinstance(prop_schema, dict):
            continue
        name = prop_schema.get("name")
        kind = prop_schema.get("type", "text")
        if not name:
            continue
        result = decode_property(kind, raw)
        if result is not None:
            decoded[name] = result
    return decoded
