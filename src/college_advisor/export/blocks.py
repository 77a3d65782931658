"""Group markdown block tokens into paragraphs and one-level lists."""

import functools
import logging
from dataclasses import dataclass, field
from typing import Sequence, Union

from markdown_it import MarkdownIt
from markdown_it.token import Token

from .inline import InlineRun, resolve_inline

logger = logging.getLogger(__name__)

_LIST_OPEN = ("bullet_list_open", "ordered_list_open")
_LIST_CLOSE = ("bullet_list_close", "ordered_list_close")


@dataclass
class Paragraph:
    runs: list[InlineRun] = field(default_factory=list)


@dataclass
class ListBlock:
    """A bulleted or numbered list, flattened to a single level."""

    items: list[list[InlineRun]] = field(default_factory=list)


DocumentElement = Union[Paragraph, ListBlock]


@functools.lru_cache(maxsize=1)
def _get_parser() -> MarkdownIt:
    return MarkdownIt("commonmark")


def tokenize(text: str) -> list[Token]:
    """Parse markdown into markdown-it's flat block token stream."""
    return _get_parser().parse(text)


def resolve_blocks(tokens: Sequence[Token], source: str) -> list[DocumentElement]:
    """Turn block tokens into document elements.

    Only paragraphs and list items are kept; headings, code, quotes and
    other blocks are skipped. A non-empty ``source`` that yields no
    elements comes back as one unstyled paragraph holding the raw text.
    """
    elements: list[DocumentElement] = []
    list_depth = 0
    quote_depth = 0
    in_paragraph = False
    items: list[list[InlineRun]] = []
    open_items: list[int] = []

    for token in tokens:
        kind = token.type

        if kind in _LIST_OPEN:
            if list_depth == 0:
                items = []
                open_items = []
            list_depth += 1
        elif kind in _LIST_CLOSE:
            list_depth = max(list_depth - 1, 0)
            if list_depth == 0:
                kept = [item for item in items if item]
                if kept:
                    elements.append(ListBlock(items=kept))
                items = []
        elif kind == "list_item_open" and list_depth:
            items.append([])
            open_items.append(len(items) - 1)
        elif kind == "list_item_close" and open_items:
            open_items.pop()
        elif kind == "blockquote_open":
            quote_depth += 1
        elif kind == "blockquote_close":
            quote_depth = max(quote_depth - 1, 0)
        elif kind == "paragraph_open":
            in_paragraph = True
        elif kind == "paragraph_close":
            in_paragraph = False
        elif kind == "inline" and in_paragraph and not quote_depth:
            runs = resolve_inline(token.children or [])
            if not runs:
                continue
            if list_depth and open_items:
                item = items[open_items[-1]]
                if item:
                    item.append(InlineRun(text=" "))
                item.extend(runs)
            elif not list_depth:
                elements.append(Paragraph(runs=runs))

    if not elements and source:
        logger.debug("No structured content in %d-char message, keeping raw text", len(source))
        return [Paragraph(runs=[InlineRun(text=source)])]
    return elements


def markdown_to_elements(text: str) -> list[DocumentElement]:
    """Tokenize ``text`` and resolve it into document elements."""
    return resolve_blocks(tokenize(text), text)
