"""
Inline markup from the rich text editor, modelled as a small span tree.

Content such as ``Hello <b>{company_name}</b><div style="text-align:center">x</div>``
is parsed once into Blocks (paragraphs with an alignment) holding TextRun /
StyledRun spans. Placeholders are resolved on the text runs afterwards, so a
substituted value can never be read as markup. Spans are then serialized to
the paragraph markup understood by reportlab.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, List, Optional, Tuple, Union
from xml.sax.saxutils import escape

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from reportlab.lib import colors

BLOCK_TAGS = frozenset({"div", "p", "li", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre"})
SKIP_TAGS = frozenset({"script", "style", "head", "title"})
ALIGNMENTS = ("left", "center", "right", "justify")

# <font size="1..7"> in px, as browsers map them
FONT_SIZE_STEPS = {1: 10, 2: 13, 3: 16, 4: 18, 5: 24, 6: 32, 7: 48}

_RGB_RE = re.compile(r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")
_HEX_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_PX_RE = re.compile(r"^([\d.]+)\s*(px|pt)?$")


@dataclass(frozen=True)
class SpanStyle:
    bold: bool = False
    italic: bool = False
    underline: bool = False
    font_size: Optional[float] = None
    color: Optional[str] = None

    def is_plain(self) -> bool:
        return self == SpanStyle()


@dataclass(frozen=True)
class TextRun:
    text: str


@dataclass(frozen=True)
class StyledRun:
    style: SpanStyle
    children: Tuple["Span", ...] = ()


Span = Union[TextRun, StyledRun]


@dataclass(frozen=True)
class Block:
    spans: Tuple[Span, ...] = field(default_factory=tuple)
    align: Optional[str] = None

    @property
    def text(self) -> str:
        return "".join(_plain_text(s) for s in self.spans)


def _plain_text(span: Span) -> str:
    if isinstance(span, TextRun):
        return span.text
    return "".join(_plain_text(c) for c in span.children)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _css(tag: Tag) -> dict:
    out = {}
    for decl in (tag.get("style") or "").split(";"):
        if ":" in decl:
            key, _, value = decl.partition(":")
            out[key.strip().lower()] = value.strip().lower()
    return out


def _parse_color(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    m = _RGB_RE.match(value)
    if m:
        r, g, b = (min(255, int(x)) for x in m.groups())
        return f"#{r:02x}{g:02x}{b:02x}"
    if _HEX_RE.match(value) or value.lower() in colors.getAllNamedColors():
        return value
    return None


def _parse_px(value: Optional[str]) -> Optional[float]:
    m = _PX_RE.match((value or "").strip())
    if not m:
        return None
    size = float(m.group(1))
    return size * 96 / 72 if m.group(2) == "pt" else size


def _tag_align(tag: Tag) -> Optional[str]:
    align = (tag.get("align") or _css(tag).get("text-align") or "").strip().lower()
    return align if align in ALIGNMENTS else None


def _tag_style(tag: Tag) -> SpanStyle:
    name = tag.name.lower()
    css = _css(tag)
    style = SpanStyle(
        bold=name in ("b", "strong") or css.get("font-weight", "") in ("bold", "bolder", "600", "700", "800", "900"),
        italic=name in ("i", "em") or css.get("font-style") == "italic",
        underline=name in ("u", "ins") or "underline" in css.get("text-decoration", ""),
        font_size=_parse_px(css.get("font-size")),
        color=_parse_color(css.get("color")),
    )
    if name == "font":
        size = style.font_size
        try:
            size = size or FONT_SIZE_STEPS.get(int(tag.get("size", "")))
        except ValueError:
            pass
        style = replace(style, font_size=size, color=style.color or _parse_color(tag.get("color")))
    return style


def _inline(tag: Tag) -> Span:
    name = tag.name.lower()
    if name == "br":
        return TextRun("\n")
    if name in SKIP_TAGS:
        return TextRun("")
    children: List[Span] = []
    for child in tag.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            children.append(TextRun(str(child)))
        elif isinstance(child, Tag):
            # A block nested in inline markup only contributes line breaks
            if child.name.lower() in BLOCK_TAGS:
                children.extend((TextRun("\n"), _inline(child), TextRun("\n")))
            else:
                children.append(_inline(child))
    return StyledRun(_tag_style(tag), tuple(children))


def _flush(blocks: List[Block], pending: List[Span], align: Optional[str]) -> None:
    if pending:
        blocks.append(Block(tuple(pending), align))
        pending.clear()


def _collect(node: Tag, align: Optional[str], blocks: List[Block]) -> None:
    pending: List[Span] = []
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            pending.append(TextRun(str(child)))
            continue
        if not isinstance(child, Tag):
            continue
        if child.name.lower() in BLOCK_TAGS:
            _flush(blocks, pending, align)
            before = len(blocks)
            _collect(child, _tag_align(child) or align, blocks)
            styled = _tag_style(child)
            if not styled.is_plain():
                blocks[before:] = [Block((StyledRun(styled, b.spans),), b.align) for b in blocks[before:]]
            if len(blocks) == before:
                # <div></div> still occupies a line in the editor
                blocks.append(Block((), _tag_align(child) or align))
            continue
        pending.append(_inline(child))
    _flush(blocks, pending, align)


def parse_markup(markup: str, align: Optional[str] = None) -> List[Block]:
    """Parse editor markup into paragraphs of spans. Plain text yields one block."""
    if not markup:
        return []
    soup = BeautifulSoup(markup, "html.parser")
    blocks: List[Block] = []
    _collect(soup, align, blocks)
    return blocks


def map_text(blocks: Iterable[Block], fn: Callable[[str], str]) -> List[Block]:
    """Return new blocks with fn applied to every text run."""

    def _map(span: Span) -> Span:
        if isinstance(span, TextRun):
            return TextRun(fn(span.text))
        return StyledRun(span.style, tuple(_map(c) for c in span.children))

    return [Block(tuple(_map(s) for s in b.spans), b.align) for b in blocks]


# ---------------------------------------------------------------------------
# Serialization (reportlab paragraph markup)
# ---------------------------------------------------------------------------

def _escape_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")
    return escape(text).replace("\n", "<br/>")


def span_markup(span: Span) -> str:
    if isinstance(span, TextRun):
        return _escape_text(span.text)
    inner = "".join(span_markup(c) for c in span.children)
    st = span.style
    if st.font_size or st.color:
        attrs = []
        if st.font_size:
            attrs.append(f'size="{st.font_size:g}"')
        if st.color:
            attrs.append(f'color="{st.color}"')
        inner = f"<font {' '.join(attrs)}>{inner}</font>"
    if st.underline:
        inner = f"<u>{inner}</u>"
    if st.italic:
        inner = f"<i>{inner}</i>"
    if st.bold:
        inner = f"<b>{inner}</b>"
    return inner


def block_markup(block: Block) -> str:
    markup = "".join(span_markup(s) for s in block.spans)
    # A block boundary already breaks the line
    if markup.endswith("<br/>"):
        markup = markup[: -len("<br/>")]
    return markup
