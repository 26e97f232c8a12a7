from __future__ import annotations

from pathlib import Path

import structlog

from .renderer import is_section_title, render_word_html

logger = structlog.get_logger()

FONT_NAME = "Bookman Old Style"


def export_docx(output_path: Path, text: str) -> Path:
    """
    Write petition text to DOCX on A4 with the office's page rules.

    Section titles (see ``is_section_title``) are bold and centred; body
    paragraphs are justified with a 1.25 cm first-line indent.
    """
    from docx import Document
    from docx.enum.text import WD_ALIGN_PARAGRAPH
    from docx.shared import Cm, Pt

    doc = Document()
    section = doc.sections[0]
    section.page_width = Cm(21)
    section.page_height = Cm(29.7)
    section.top_margin = Cm(2.5)
    section.bottom_margin = Cm(2.5)
    section.left_margin = Cm(3.0)
    section.right_margin = Cm(2.0)
    section.header_distance = Cm(1.25)
    section.footer_distance = Cm(1.25)

    normal = doc.styles["Normal"]
    normal.font.name = FONT_NAME
    normal.font.size = Pt(12)

    for line in text.splitlines():
        if not line.strip():
            doc.add_paragraph("")
            continue
        paragraph = doc.add_paragraph()
        fmt = paragraph.paragraph_format
        fmt.line_spacing = 1.5
        fmt.space_before = Pt(0)
        fmt.space_after = Pt(0)
        run = paragraph.add_run(line.strip() if is_section_title(line) else line)
        if is_section_title(line):
            run.bold = True
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        else:
            paragraph.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
            fmt.first_line_indent = Cm(1.25)
    doc.save(output_path)
    logger.info("petition.exported", format="docx", path=str(output_path))
    return output_path


def export_word_html(output_path: Path, text: str, title: str = "Petição Inicial") -> Path:
    """HTML wrapper that word processors open as a document (``.doc``)."""
    output_path.write_text(render_word_html(text, title=title), encoding="utf-8")
    logger.info("petition.exported", format="doc", path=str(output_path))
    return output_path
