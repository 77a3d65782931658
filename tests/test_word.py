"""Tests for the Word transcript builder."""

import io

import pytest
from docx import Document
from docx.oxml.ns import qn

from college_advisor.export.plain import TRANSCRIPT_TITLE
from college_advisor.export.word import build_document, package_document, render_word, xml_safe


def _hyperlinks(paragraph):
    return paragraph._p.findall(qn("w:hyperlink"))


def _link_runs(hyperlink):
    runs = []
    for r in hyperlink.findall(qn("w:r")):
        rpr = r.find(qn("w:rPr"))
        bold = rpr is not None and rpr.find(qn("w:b")) is not None
        runs.append(("".join(t.text for t in r.findall(qn("w:t"))), bold))
    return runs


class TestDocumentHeader:
    def test_title_and_metadata(self, sample_messages, generated_at):
        doc = build_document(sample_messages, generated_at)
        paragraphs = doc.paragraphs
        assert paragraphs[0].text == TRANSCRIPT_TITLE
        assert paragraphs[0].style.name == "Title"
        assert paragraphs[1].runs[0].text == "Generated: 01/15/2025, 12:00:00 PM"
        assert paragraphs[1].runs[0].bold
        assert paragraphs[2].runs[0].text == "Total Messages: 2"
        assert paragraphs[2].runs[0].bold

    def test_message_headings(self, sample_messages, generated_at):
        doc = build_document(sample_messages, generated_at)
        headings = [p for p in doc.paragraphs if p.style.name == "Heading 2"]
        assert [p.text for p in headings] == [
            "Student - 01/15/2025, 10:00:00 AM",
            "Advisor - 01/15/2025, 10:00:30 AM",
        ]


class TestRuns:
    def test_bold_run_next_to_plain_run(self, sample_messages, generated_at):
        doc = build_document(sample_messages, generated_at)
        para = next(p for p in doc.paragraphs if [r.text for r in p.runs] == ["Hello ", "there"])
        hello, there = para.runs
        assert not hello.bold
        assert there.bold

    def test_italic_run(self, rich_messages, generated_at):
        doc = build_document(rich_messages, generated_at)
        runs = [r for p in doc.paragraphs for r in p.runs]
        engineering = next(r for r in runs if r.text == "engineering")
        assert engineering.italic
        assert not engineering.bold

    def test_link_keeps_mixed_formatting(self, rich_messages, generated_at):
        doc = build_document(rich_messages, generated_at)
        para = next(p for p in doc.paragraphs if _hyperlinks(p) and not p.runs)
        hyperlink = _hyperlinks(para)[0]
        assert _link_runs(hyperlink) == [("Purdue ", False), ("University", True)]
        r_id = hyperlink.get(qn("r:id"))
        assert doc.part.rels[r_id].target_ref == "https://www.purdue.edu"

    def test_link_inside_paragraph(self, rich_messages, generated_at):
        doc = build_document(rich_messages, generated_at)
        para = next(p for p in doc.paragraphs if p.runs and p.runs[0].text == "Check the ")
        links = _hyperlinks(para)
        assert len(links) == 1
        assert _link_runs(links[0]) == [("College Scorecard", False)]
        assert [r.text for r in para.runs] == ["Check the ", " for salary data."]


class TestLists:
    def test_list_items_are_bullets(self, rich_messages, generated_at):
        doc = build_document(rich_messages, generated_at)
        bullets = [p for p in doc.paragraphs if p.style.name == "List Bullet"]
        # two list items and two citation links
        assert len(bullets) == 4
        assert [r.text for r in bullets[0].runs] == ["Georgia Tech", " for ", "in-state", " students"]
        assert bullets[0].runs[0].bold

    def test_citations(self, rich_messages, generated_at):
        doc = build_document(rich_messages, generated_at)
        sources = next(p for p in doc.paragraphs if p.runs and p.runs[0].text == "Sources:")
        assert sources.runs[0].bold
        targets = {rel.target_ref for rel in doc.part.rels.values() if rel.is_external}
        assert {"https://www.bls.gov/ooh/", "https://studentaid.gov"} <= targets


class TestFallback:
    def test_heading_only_message_kept_verbatim(self, generated_at, sample_messages):
        msg = sample_messages[1]
        msg.content = "# Next steps"
        doc = build_document([msg], generated_at)
        assert any(p.runs and p.runs[0].text == "# Next steps" for p in doc.paragraphs)


class TestControlCharacters:
    def test_xml_safe_keeps_tabs_and_newlines(self):
        assert xml_safe("a\x0cb\x0bc\x00d\te\nf") == "abcd\te\nf"

    @pytest.mark.asyncio
    async def test_pasted_control_characters_are_dropped(self, sample_messages, generated_at):
        sample_messages[0].content = "Pasted text\x0cwith form feed"
        sample_messages[1].content = "tab\there and \x0bvtab [aid\x0c](https://studentaid.gov)"
        data = await render_word(sample_messages, generated_at)

        reopened = Document(io.BytesIO(data))
        texts = [p.text for p in reopened.paragraphs]
        assert "Pasted textwith form feed" in texts
        assert any(t.startswith("tab\there and vtab") for t in texts)
        [link] = [h for p in reopened.paragraphs for h in _hyperlinks(p)]
        assert _link_runs(link) == [("aid", False)]


class TestPackaging:
    @pytest.mark.asyncio
    async def test_package_document(self, sample_messages, generated_at):
        doc = build_document(sample_messages, generated_at)
        data = await package_document(doc)
        assert data[:2] == b"PK"
        reopened = Document(io.BytesIO(data))
        assert reopened.paragraphs[0].text == TRANSCRIPT_TITLE

    @pytest.mark.asyncio
    async def test_render_word(self, rich_messages, generated_at):
        data = await render_word(rich_messages, generated_at)
        reopened = Document(io.BytesIO(data))
        headings = [p.text for p in reopened.paragraphs if p.style.name == "Heading 2"]
        assert headings[0].startswith("Student - ")
