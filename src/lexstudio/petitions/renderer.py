from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Callable, List

import structlog

from ..core.errors import InputValidationError
from .templates import PLACEHOLDER

logger = structlog.get_logger()

WORD_HTML_MIME = "application/msword"
TITLE_MAX_LENGTH = 80

_PARAGRAPH_BASE = "text-align: justify; line-height: 1.5; margin: 0; padding: 0;"
TITLE_STYLE = "font-weight: bold; text-transform: uppercase; " + _PARAGRAPH_BASE
BODY_STYLE = "text-indent: 1.25cm; " + _PARAGRAPH_BASE
PAGE_STYLE = "body { font-family: 'Bookman Old Style', serif; font-size: 12pt; }"
VIEWER_STYLE = (
    "body { font-family: 'Bookman Old Style', serif; font-size: 12pt; padding: 2.5cm 2.0cm 2.5cm 3.0cm; }"
    " .placeholder { color: #ef4444; font-weight: bold; }"
)

_PLACEHOLDER_RE = re.compile("(" + re.escape(PLACEHOLDER) + ")")


def is_section_title(line: str) -> bool:
    """Whole line uppercase, no bracketed placeholder, shorter than 80 chars."""
    stripped = line.strip()
    return (
        bool(stripped)
        and stripped == stripped.upper()
        and "[" not in line
        and len(stripped) < TITLE_MAX_LENGTH
    )


def _esc(text: str) -> str:
    return html.escape(text, quote=False)


def _document(body: str, style: str = PAGE_STYLE) -> str:
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"UTF-8\">\n"
        f"<style>{style}</style>\n</head>\n<body>{body}</body>\n</html>\n"
    )


def _paragraphs(text: str, highlight_placeholders: bool = False) -> str:
    out: List[str] = []
    for line in text.split("\n"):
        if not line.strip():
            out.append("<p>&nbsp;</p>")
            continue
        style = TITLE_STYLE if is_section_title(line) else BODY_STYLE
        if highlight_placeholders:
            content = "".join(
                f'<span class="placeholder">{_esc(part)}</span>' if part == PLACEHOLDER else _esc(part)
                for part in _PLACEHOLDER_RE.split(line)
            )
        else:
            content = _esc(line)
        out.append(f'<p style="{style}">{content}</p>')
    return "".join(out)


def render_clipboard_html(text: str) -> str:
    return _document(_paragraphs(text))


def render_viewer_html(text: str) -> str:
    """Preview page with missing-information placeholders highlighted."""
    return _document(_paragraphs(text, highlight_placeholders=True), style=VIEWER_STYLE)


def render_word_html(text: str, title: str = "Petição Inicial") -> str:
    body = _paragraphs(text)
    return (
        '<!DOCTYPE html>\n<html xmlns:o="urn:schemas-microsoft-com:office:office" '
        'xmlns:w="urn:schemas-microsoft-com:office:word" xmlns="http://www.w3.org/TR/REC-html40">\n'
        f"<head>\n<meta charset=\"utf-8\">\n<title>{_esc(title)}</title>\n<style>{PAGE_STYLE}</style>\n</head>\n"
        f"<body>{body}</body>\n</html>\n"
    )


@dataclass(frozen=True)
class ClipboardPayload:
    plain: str
    html: str | None = None


def build_clipboard_payload(
    text: str, render: Callable[[str], str] = render_clipboard_html
) -> ClipboardPayload:
    """Rich HTML when it renders, otherwise plain text only."""
    if not text:
        raise InputValidationError("Não há texto para copiar.")
    try:
        rendered = render(text)
    except Exception as exc:
        logger.warning("clipboard.html_failed", error=repr(exc))
        return ClipboardPayload(plain=text)
    return ClipboardPayload(plain=text, html=rendered)
