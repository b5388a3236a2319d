from __future__ import annotations

from invoicegen.core.placeholders import resolve
from invoicegen.pdf.richtext import Block, StyledRun, TextRun, block_markup, map_text, parse_markup


def test_plain_text_is_one_block() -> None:
    blocks = parse_markup("Hello world")
    assert blocks == [Block((TextRun("Hello world"),), None)]


def test_divs_become_aligned_blocks() -> None:
    blocks = parse_markup('<div>One</div><div style="text-align: center">Two</div><p align="right">Three</p>')
    assert [b.text for b in blocks] == ["One", "Two", "Three"]
    assert [b.align for b in blocks] == [None, "center", "right"]


def test_inline_styles_nest() -> None:
    (block,) = parse_markup('<b>Bold <i>both</i></b> <span style="font-size: 18px; color: rgb(255, 0, 0)">big</span>')
    bold = block.spans[0]
    assert isinstance(bold, StyledRun) and bold.style.bold
    inner = bold.children[1]
    assert isinstance(inner, StyledRun) and inner.style.italic
    span = block.spans[2]
    assert span.style.font_size == 18.0
    assert span.style.color == "#ff0000"


def test_markup_serializes_for_paragraphs() -> None:
    (block,) = parse_markup("<b>A</b> &amp; <u>B</u><br>C")
    assert block_markup(block) == "<b>A</b> &amp; <u>B</u><br/>C"


def test_empty_div_keeps_its_line() -> None:
    blocks = parse_markup("<div>a</div><div></div><div>b</div>")
    assert len(blocks) == 3
    assert blocks[1].spans == ()


def test_placeholders_resolved_per_run_never_become_markup() -> None:
    blocks = parse_markup("<b>{company_name}</b>")
    resolved = map_text(blocks, lambda s: resolve(s, {"company_name": "<i>Tom & Co</i>"}))
    assert block_markup(resolved[0]) == "<b>&lt;i&gt;Tom &amp; Co&lt;/i&gt;</b>"


def test_empty_markup() -> None:
    assert parse_markup("") == []
