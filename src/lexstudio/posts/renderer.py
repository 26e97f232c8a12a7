from __future__ import annotations

import html
import re
from pathlib import Path

import structlog

from ..llm import decode_data_uri
from .schema import PostContent, PostResult

logger = structlog.get_logger()

_NON_SLUG_CHAR = re.compile(r"[^a-z0-9]")
_WHITESPACE = re.compile(r"\s+")


def _esc(text: str) -> str:
    return html.escape(text, quote=False)


def post_filename(title: str) -> str:
    """Every character outside ``[a-z0-9]`` becomes ``-`` (no collapsing)."""
    return _NON_SLUG_CHAR.sub("-", title.lower()) + ".doc"


def image_filename(title: str, suffix: str = "") -> str:
    return _WHITESPACE.sub("-", title.lower()) + suffix + ".png"


def render_post_texts_html(content: PostContent) -> str:
    copy_html = _esc(content.copy_text).replace("\n", "<br />")
    return (
        '<!DOCTYPE html>\n<html xmlns:o="urn:schemas-microsoft-com:office:office" '
        'xmlns:w="urn:schemas-microsoft-com:office:word" xmlns="http://www.w3.org/TR/REC-html40">\n'
        f'<head>\n<meta charset="utf-8">\n<title>{_esc(content.title)}</title>\n</head>\n<body>\n'
        f"<h1>{_esc(content.title)}</h1>\n"
        f"<h2>{_esc(content.subtitle)}</h2>\n"
        f"<p>{copy_html}</p>\n"
        "<hr/>\n"
        "<h3>Hashtags</h3>\n"
        f"<p>{_esc(' '.join(content.hashtags))}</p>\n"
        "<h3>Palavras-chave (SEO)</h3>\n"
        f"<p>{_esc(', '.join(content.seo_keywords))}</p>\n"
        "</body>\n</html>\n"
    )


def write_post(out_dir: Path, result: PostResult) -> dict:
    """Write the texts document and both images; returns the written paths."""
    out_dir.mkdir(parents=True, exist_ok=True)
    title = result.post_content.title
    texts_path = out_dir / post_filename(title)
    texts_path.write_text(render_post_texts_html(result.post_content), encoding="utf-8")

    written = {"texts": texts_path}
    for label, uri, suffix in (
        ("with_text", result.image_url_with_text, ""),
        ("without_text", result.image_url_without_text, "-sem-texto"),
    ):
        _, data = decode_data_uri(uri)
        path = out_dir / image_filename(title, suffix)
        path.write_bytes(data)
        written[label] = path
    logger.info("post.written", out_dir=str(out_dir), files=len(written))
    return written
