"""
Legacy rich-text HTML -> structured block JSON.

Posts written with the previous editor were stored as an HTML fragment.
The current editor stores an ordered list of typed blocks::

    [{"id": "block-...", "type": "heading", "props": {"level": 2},
      "content": [{"type": "text", "text": "Title"}]}, ...]

Conversion is a flat sequence of regular-expression passes, one per tag
family, each scanning the whole fragment.  It is not a parser: tags no
pass recognises are dropped, and the order of the resulting blocks is
recovered afterwards by locating each block's text in the source (see
``_sort_blocks_by_appearance``).  The output of that heuristic is what
existing migrated posts contain, so it is reproduced as is.

The converter never raises on malformed markup; anything it cannot match
is simply left out.
"""
import json
import re
import time
from typing import List, Literal, TypedDict, Union


class InlineStyles(TypedDict, total=False):
    bold: bool
    italic: bool
    underline: bool
    strikethrough: bool
    code: bool


class InlineSpan(TypedDict, total=False):
    type: Literal["text", "link"]
    text: str
    href: str
    # Not produced by the converter; the block editor understands it.
    styles: InlineStyles


class TableRow(TypedDict):
    cells: List[List[InlineSpan]]


class TableContent(TypedDict):
    type: Literal["tableContent"]
    rows: List[TableRow]


class Block(TypedDict, total=False):
    id: str
    type: str
    props: dict
    content: Union[List[InlineSpan], TableContent]
    children: List["Block"]


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_FLAGS = re.IGNORECASE | re.DOTALL

_BODY_RE = re.compile(r"<body[^>]*>(.*?)</body>", _FLAGS)
_CLIPBOARD_RE = re.compile(r'id="yoopta-clipboard"[^>]*>(.*?)</body>', _FLAGS)

_ATTR_RE = re.compile(r"""(\w+)=["']([^"']*)["']""")
_ENTITY_RE = re.compile(r"&[^;]+;")
_TAG_RE = re.compile(r"<[^>]*>")
_LINK_RE = re.compile(r"<a\s+([^>]*?)>([^<]*)</a>")
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")

_PARAGRAPH_RE = re.compile(r"<p(?:\s+([^>]*))?>(.*?)</p>", _FLAGS)
_HEADING_RES = [
    (level, re.compile(rf"<h{level}(?:\s+([^>]*))?>(.*?)</h{level}>", _FLAGS))
    for level in (1, 2, 3)
]
_BULLET_LIST_RE = re.compile(r"<ul(?:\s+([^>]*))?>(.*?)</ul>", _FLAGS)
_NUMBERED_LIST_RE = re.compile(r"<ol(?:\s+([^>]*))?>(.*?)</ol>", _FLAGS)
_LIST_ITEM_RE = re.compile(r"<li[^>]*>(.*?)</li>", _FLAGS)
_CODE_RE = re.compile(r"<pre(?:\s+([^>]*))?>(.*?)</pre>", _FLAGS)
_IMAGE_RE = re.compile(r"<img\s+([^>]*?)(?:/>|></img>)", _FLAGS)
_WRAPPED_IMAGE_RE = re.compile(r"<div[^>]*>\s*<img\s+([^>]*?)(?:/>|></img>)\s*</div>", _FLAGS)
_RULE_RE = re.compile(r"<hr[^>]*>", _FLAGS)
_TABLE_RE = re.compile(r"<table[^>]*>(.*?)</table>", _FLAGS)
_ROW_RE = re.compile(r"<tr[^>]*>(.*?)</tr>", _FLAGS)
_CELL_RE = re.compile(r"<t[dh][^>]*>(.*?)</t[dh]>", _FLAGS)

_ENTITIES = {
    "&lt;": "<",
    "&gt;": ">",
    "&amp;": "&",
    "&quot;": '"',
    "&#39;": "'",
    "&nbsp;": " ",
}

DEFAULT_CODE_LANGUAGE = "javascript"
NOT_FOUND = -1


def _text_span(text: str) -> InlineSpan:
    return {"type": "text", "text": text}


def parse_attributes(attribute_string: str | None) -> dict[str, str]:
    """Return ``name -> value`` for every quoted attribute in *attribute_string*."""
    if not attribute_string:
        return {}
    return {name: value for name, value in _ATTR_RE.findall(attribute_string)}


def decode_entities(text: str) -> str:
    return _ENTITY_RE.sub(lambda m: _ENTITIES.get(m.group(0), m.group(0)), text)


def strip_tags(html: str) -> str:
    return decode_entities(_TAG_RE.sub("", html))


def _parse_int(value: str) -> int | None:
    match = _LEADING_INT_RE.match(value)
    return int(match.group(1)) if match else None


class LegacyContentConverter:
    """
    Converts one legacy HTML fragment into a list of blocks.

    Block ids only need to be unique inside one document, so each instance
    keeps its own counter; create a fresh converter per conversion.
    """

    def __init__(self) -> None:
        self._block_id_counter = 0

    def _generate_block_id(self) -> str:
        block_id = f"block-{int(time.time() * 1000)}-{self._block_id_counter}"
        self._block_id_counter += 1
        return block_id

    # ------------------------------------------------------------------
    # Inline content
    # ------------------------------------------------------------------

    def parse_inline_content(self, html: str) -> List[InlineSpan]:
        """Split *html* into text and link spans, scanning links left to right."""
        result: List[InlineSpan] = []
        last_index = 0

        for match in _LINK_RE.finditer(html):
            if match.start() > last_index:
                before = strip_tags(html[last_index:match.start()])
                if before:
                    result.append(_text_span(before))

            attributes = parse_attributes(match.group(1))
            link_text = strip_tags(match.group(2))
            if link_text:
                result.append({"type": "link", "text": link_text, "href": attributes.get("href", "")})

            last_index = match.end()

        if last_index < len(html):
            remaining = strip_tags(html[last_index:])
            if remaining:
                result.append(_text_span(remaining))

        if not result:
            plain = strip_tags(html)
            if plain:
                result.append(_text_span(plain))

        return result

    # ------------------------------------------------------------------
    # Per-tag passes
    # ------------------------------------------------------------------

    def _paragraph_blocks(self, html: str) -> List[Block]:
        blocks: List[Block] = []
        for match in _PARAGRAPH_RE.finditer(html):
            inner = match.group(2)
            content = self.parse_inline_content(inner)
            if content or inner.strip():
                blocks.append({
                    "id": self._generate_block_id(),
                    "type": "paragraph",
                    "content": content or [_text_span("")],
                })
        return blocks

    def _heading_blocks(self, html: str) -> List[Block]:
        blocks: List[Block] = []
        for level, pattern in _HEADING_RES:
            for match in pattern.finditer(html):
                blocks.append({
                    "id": self._generate_block_id(),
                    "type": "heading",
                    "props": {"level": level},
                    "content": self.parse_inline_content(match.group(2)),
                })
        return blocks

    def _list_blocks(self, html: str, pattern: re.Pattern, block_type: str) -> List[Block]:
        blocks: List[Block] = []
        for match in pattern.finditer(html):
            for item in _LIST_ITEM_RE.finditer(match.group(2)):
                blocks.append({
                    "id": self._generate_block_id(),
                    "type": block_type,
                    "content": self.parse_inline_content(item.group(1)),
                })
        return blocks

    def _code_blocks(self, html: str) -> List[Block]:
        blocks: List[Block] = []
        for match in _CODE_RE.finditer(html):
            # Attribute names are word characters only, so ``data-language`` is
            # read as ``language`` and every code block gets the default.
            attributes = parse_attributes(match.group(1))
            blocks.append({
                "id": self._generate_block_id(),
                "type": "code",
                "props": {"language": attributes.get("data-language") or DEFAULT_CODE_LANGUAGE},
                "content": [_text_span(strip_tags(match.group(2)))],
            })
        return blocks

    def _image_block(self, attribute_string: str) -> Block:
        attributes = parse_attributes(attribute_string)
        props: dict = {
            "url": attributes.get("src", ""),
            "caption": attributes.get("alt", ""),
        }
        for dimension in ("width", "height"):
            raw = attributes.get(dimension)
            if raw:
                # Non-numeric sizes are kept as null.
                props[dimension] = _parse_int(raw)
        return {"id": self._generate_block_id(), "type": "image", "props": props}

    def _image_blocks(self, html: str) -> List[Block]:
        # Both passes run on the full fragment: a div-wrapped image is also
        # matched by the bare pass.
        blocks = [self._image_block(m.group(1)) for m in _IMAGE_RE.finditer(html)]
        blocks.extend(self._image_block(m.group(1)) for m in _WRAPPED_IMAGE_RE.finditer(html))
        return blocks

    def _rule_blocks(self, html: str) -> List[Block]:
        return [
            {"id": self._generate_block_id(), "type": "paragraph", "content": [_text_span("---")]}
            for _ in _RULE_RE.finditer(html)
        ]

    def _table_blocks(self, html: str) -> List[Block]:
        blocks: List[Block] = []
        for table in _TABLE_RE.finditer(html):
            rows: List[TableRow] = []
            for row in _ROW_RE.finditer(table.group(1)):
                cells = [self.parse_inline_content(cell.group(1)) for cell in _CELL_RE.finditer(row.group(1))]
                if cells:
                    rows.append({"cells": cells})
            if rows:
                blocks.append({
                    "id": self._generate_block_id(),
                    "type": "table",
                    "content": {"type": "tableContent", "rows": rows},
                })
        return blocks

    def convert_html_to_blocks(self, html: str) -> List[Block]:
        """Run every pass over *html*; blocks come out grouped by pass, not by position."""
        blocks: List[Block] = []
        blocks.extend(self._paragraph_blocks(html))
        blocks.extend(self._heading_blocks(html))
        blocks.extend(self._list_blocks(html, _BULLET_LIST_RE, "bulletListItem"))
        blocks.extend(self._list_blocks(html, _NUMBERED_LIST_RE, "numberedListItem"))
        blocks.extend(self._code_blocks(html))
        blocks.extend(self._image_blocks(html))
        blocks.extend(self._rule_blocks(html))
        blocks.extend(self._table_blocks(html))
        return blocks

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def _empty_document(self) -> List[Block]:
        return [{"id": self._generate_block_id(), "type": "paragraph", "content": [_text_span("")]}]

    def convert(self, html: str | None) -> List[Block]:
        if not html or not html.strip():
            return self._empty_document()

        envelope = _BODY_RE.search(html) or _CLIPBOARD_RE.search(html)
        content_html = envelope.group(1) if envelope else html

        blocks = self.convert_html_to_blocks(content_html)
        if not blocks:
            return self._empty_document()

        return _sort_blocks_by_appearance(blocks, content_html)


def _block_position(block: Block, html: str) -> int:
    """
    Offset of the block's anchor in *html*, or ``NOT_FOUND``.

    Only paragraphs and headings (by their plain text) and images (by URL)
    have an anchor.  List items, code and tables never do.  An empty text
    anchors at offset 0.
    """
    block_type = block.get("type")
    if block_type in ("paragraph", "heading") and "content" in block:
        text = "".join(span.get("text", "") for span in block["content"])
        return html.find(text)
    if block_type == "image" and block.get("props", {}).get("url"):
        return html.find(block["props"]["url"])
    return NOT_FOUND


def _sort_blocks_by_appearance(blocks: List[Block], html: str) -> List[Block]:
    positioned = [(block, _block_position(block, html)) for block in blocks]
    # Stable: unplaced blocks keep their emission order at the end.
    positioned.sort(key=lambda item: (item[1] == NOT_FOUND, item[1]))
    return [block for block, _ in positioned]


def convert_legacy_to_blocks(html: str | None) -> str:
    """Convert a legacy HTML fragment and return the block list as compact JSON."""
    blocks = LegacyContentConverter().convert(html)
    return json.dumps(blocks, ensure_ascii=False, separators=(",", ":"))
