"""Build Word (.docx) transcripts with python-docx."""

import asyncio
import io
import logging
import re
from datetime import datetime

from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import RGBColor
from docx.text.paragraph import Paragraph as DocxParagraph
from docx.text.run import Run

from ..core import Message, format_timestamp, role_label
from .blocks import ListBlock, Paragraph, markdown_to_elements
from .inline import InlineRun
from .plain import TRANSCRIPT_TITLE

logger = logging.getLogger(__name__)

LINK_COLOR = RGBColor(0x05, 0x63, 0xC1)
BULLET_STYLE = "List Bullet"

# characters XML 1.0 cannot carry; tab, newline and carriage return are allowed
_XML_ILLEGAL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def xml_safe(text: str) -> str:
    return _XML_ILLEGAL.sub("", text)


def _apply_style(run: Run, inline: InlineRun):
    if inline.bold:
        run.bold = True
    if inline.italic:
        run.italic = True


def _add_hyperlink(paragraph: DocxParagraph, url: str, children: list[InlineRun]):
    """Append a ``w:hyperlink`` holding one styled run per child."""
    r_id = paragraph.part.relate_to(url, RT.HYPERLINK, is_external=True)
    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), r_id)
    for child in children:
        run = Run(OxmlElement("w:r"), paragraph)
        run.text = xml_safe(child.text)
        _apply_style(run, child)
        run.font.color.rgb = LINK_COLOR
        run.font.underline = True
        hyperlink.append(run._r)
    paragraph._p.append(hyperlink)


def add_runs(paragraph: DocxParagraph, runs: list[InlineRun]):
    """Append inline runs to a paragraph, wrapping link runs in hyperlinks."""
    for inline in runs:
        if inline.link:
            children = inline.link_children or [
                InlineRun(text=inline.text, bold=inline.bold, italic=inline.italic)
            ]
            _add_hyperlink(paragraph, inline.link, children)
        else:
            _apply_style(paragraph.add_run(xml_safe(inline.text)), inline)


def build_document(messages: list[Message], generated_at: datetime):
    """Build the transcript as a python-docx Document (not yet packaged)."""
    doc = Document()
    doc.add_heading(TRANSCRIPT_TITLE, 0)
    doc.add_paragraph().add_run(f"Generated: {format_timestamp(generated_at)}").bold = True
    doc.add_paragraph().add_run(f"Total Messages: {len(messages)}").bold = True

    for msg in messages:
        doc.add_heading(f"{role_label(msg.role)} - {format_timestamp(msg.timestamp)}", level=2)

        for element in markdown_to_elements(msg.content):
            if isinstance(element, Paragraph):
                add_runs(doc.add_paragraph(), element.runs)
            elif isinstance(element, ListBlock):
                for item in element.items:
                    add_runs(doc.add_paragraph(style=BULLET_STYLE), item)

        if msg.citations:
            doc.add_paragraph().add_run("Sources:").bold = True
            for url in msg.citations:
                _add_hyperlink(doc.add_paragraph(style=BULLET_STYLE), url, [InlineRun(text=url)])

    return doc


async def package_document(doc) -> bytes:
    """Serialize a Document to .docx bytes off the event loop."""
    buffer = io.BytesIO()
    await asyncio.to_thread(doc.save, buffer)
    return buffer.getvalue()


async def render_word(messages: list[Message], generated_at: datetime) -> bytes:
    doc = build_document(messages, generated_at)
    docx_bytes = await package_document(doc)
    logger.info("Packaged %d messages into a %d-byte document", len(messages), len(docx_bytes))
    return docx_bytes
