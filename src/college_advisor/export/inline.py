"""Resolve markdown-it inline tokens into style-annotated text runs.

The tokenizer hands us a flat stream (``strong_open``, ``text``,
``strong_close`` ...) rather than a tree, so nested spans are matched with a
depth counter and each span is resolved by a recursive call that receives
the bold/italic context as arguments.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from markdown_it.token import Token

# open type -> close type for spans that toggle a style flag
_STYLE_SPANS = {
    "strong_open": "strong_close",
    "em_open": "em_close",
}


@dataclass
class InlineRun:
    """A contiguous span of text sharing one formatting state.

    For link runs, ``text`` is the flattened label and ``link_children``
    keeps the per-segment styling inside the label.
    """

    text: str
    bold: bool = False
    italic: bool = False
    link: Optional[str] = None
    link_children: Optional[list["InlineRun"]] = None


def _find_close(tokens: Sequence[Token], open_idx: int, end: int) -> int:
    """Return the index of the token closing ``tokens[open_idx]``.

    Same-type opens inside the span increase the depth. When the stream
    ends before the span is closed, ``end`` is returned so the caller
    resolves everything up to the end of the stream.
    """
    open_type = tokens[open_idx].type
    close_type = _STYLE_SPANS[open_type]
    depth = 1
    for i in range(open_idx + 1, end):
        if tokens[i].type == open_type:
            depth += 1
        elif tokens[i].type == close_type:
            depth -= 1
            if depth == 0:
                return i
    return end


def _find_link_close(tokens: Sequence[Token], open_idx: int, end: int) -> int:
    # links cannot nest, the next link_close is the match
    for i in range(open_idx + 1, end):
        if tokens[i].type == "link_close":
            return i
    return end


def resolve_inline(
    tokens: Sequence[Token],
    start: int = 0,
    end: Optional[int] = None,
    bold: bool = False,
    italic: bool = False,
) -> list[InlineRun]:
    """Resolve ``tokens[start:end]`` into runs under the given style context."""
    if end is None:
        end = len(tokens)

    runs: list[InlineRun] = []
    i = start
    while i < end:
        token = tokens[i]
        kind = token.type

        if kind in ("text", "code_inline"):
            if token.content:
                runs.append(InlineRun(text=token.content, bold=bold, italic=italic))
            i += 1
        elif kind in ("softbreak", "hardbreak"):
            runs.append(InlineRun(text=" ", bold=bold, italic=italic))
            i += 1
        elif kind in _STYLE_SPANS:
            close = _find_close(tokens, i, end)
            runs.extend(resolve_inline(
                tokens,
                i + 1,
                close,
                bold=bold or kind == "strong_open",
                italic=italic or kind == "em_open",
            ))
            i = close + 1
        elif kind == "link_open":
            close = _find_link_close(tokens, i, end)
            children = resolve_inline(tokens, i + 1, close, bold=bold, italic=italic)
            href = token.attrGet("href")
            if children and href:
                runs.append(InlineRun(
                    text="".join(child.text for child in children),
                    bold=bold,
                    italic=italic,
                    link=str(href),
                    link_children=children,
                ))
            else:
                runs.extend(children)
            i = close + 1
        else:
            i += 1

    return runs


def runs_to_text(runs: Sequence[InlineRun]) -> str:
    """Concatenate run texts, i.e. the markup-stripped content."""
    return "".join(run.text for run in runs)
