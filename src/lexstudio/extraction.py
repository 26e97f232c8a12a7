"""
Turn uploaded case documents into prompt text.

Word and spreadsheet files are converted locally; PDFs and images are kept
as inline binary parts for the multimodal model. Legacy ``.doc`` is refused
outright.
"""
from __future__ import annotations

import csv
import io
import mimetypes
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Protocol, Sequence

import structlog
from pydantic import BaseModel, Field

from .core.errors import ExtractionError, StudioError, UnsupportedFormatError
from .core.utils import file_extension
from .llm import InlinePart

logger = structlog.get_logger()

WORD_EXTENSIONS = {".docx"}
SPREADSHEET_EXTENSIONS = {".xlsx", ".xls"}
TEXT_EXTENSIONS = {".txt"}
NATIVE_MIME_TYPES = {"application/pdf"}
NATIVE_MIME_PREFIXES = ("image/",)

CASE_DOCUMENT_ACCEPT = ".pdf,.docx,.xlsx,.xls,.txt,image/*"
TEMPLATE_ACCEPT = ".docx,.txt"
IMAGE_ACCEPT = "image/*"

ExtractedText = Dict[str, str]


class DocumentKind(str, Enum):
    WORD = "word"
    SPREADSHEET = "spreadsheet"
    TEXT = "text"
    NATIVE = "native"


class CaseDocument(BaseModel):
    name: str
    mime_type: str = ""
    data: bytes = Field(repr=False)

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> "CaseDocument":
        p = Path(path)
        guessed, _ = mimetypes.guess_type(p.name)
        return cls(name=p.name, mime_type=mime_type or guessed or "", data=p.read_bytes())

    @property
    def extension(self) -> str:
        return file_extension(self.name)

    def to_part(self) -> InlinePart:
        return InlinePart(mime_type=self.mime_type, data=self.data)


class TemplateDocument(BaseModel):
    name: str
    text: str


class ExtractionResult(BaseModel):
    texts: ExtractedText = Field(default_factory=dict)
    native: List[CaseDocument] = Field(default_factory=list)

    @property
    def native_parts(self) -> List[InlinePart]:
        return [doc.to_part() for doc in self.native]


class TextExtractor(Protocol):
    def extract(self, document: CaseDocument) -> str:
        ...


def _legacy_doc_message(name: str) -> str:
    return f'O formato .doc não é suportado. Por favor, salve o arquivo "{name}" como .docx antes de fazer o upload.'


def validate_upload(name: str, mime_type: str, accept: str) -> None:
    """Upload-widget rules: ``.doc`` first, then extension, then MIME pattern."""
    lowered = name.lower()
    if lowered.endswith(".doc"):
        raise UnsupportedFormatError(_legacy_doc_message(name), details={"file": name})
    if not accept or accept == "*/*":
        return

    accepted = [v.strip().lower() for v in accept.split(",") if v.strip()]
    extensions = [v for v in accepted if v.startswith(".")]
    mime_patterns = [v for v in accepted if not v.startswith(".")]
    if file_extension(name) in extensions:
        return
    mime = (mime_type or "").lower()
    for pattern in mime_patterns:
        if pattern.endswith("/*") and mime.startswith(pattern[:-1]):
            return
        if pattern == mime:
            return
    raise UnsupportedFormatError(
        f"Tipo de arquivo não suportado: {name}.\n\nFormatos aceitos: {', '.join(accepted)}",
        details={"file": name, "accept": accepted},
    )


def classify(document: CaseDocument) -> DocumentKind:
    ext = document.extension
    if ext == ".doc":
        raise UnsupportedFormatError(_legacy_doc_message(document.name), details={"file": document.name})
    if ext in WORD_EXTENSIONS:
        return DocumentKind.WORD
    if ext in SPREADSHEET_EXTENSIONS:
        return DocumentKind.SPREADSHEET
    mime = document.mime_type.lower()
    if ext in TEXT_EXTENSIONS or mime == "text/plain":
        return DocumentKind.TEXT
    if mime in NATIVE_MIME_TYPES or mime.startswith(NATIVE_MIME_PREFIXES):
        return DocumentKind.NATIVE
    raise UnsupportedFormatError(
        f"O tipo de arquivo de '{document.name}' não é suportado. "
        "Por favor, tente converter para PDF, DOCX, XLSX ou TXT.",
        details={"file": document.name, "mime_type": document.mime_type},
    )


def _docx_text(data: bytes) -> str:
    from docx import Document

    doc = Document(io.BytesIO(data))
    lines = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            lines.append("\t".join(cell.text for cell in row.cells))
    return "\n".join(lines)


def _rows_to_csv(rows: Iterable[Sequence[object]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buf.getvalue()


def _sheet_header(name: str) -> str:
    return f"\n--- Planilha: {name} ---\n"


def _xlsx_text(data: bytes) -> str:
    from openpyxl import load_workbook

    workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        out: List[str] = []
        for sheet in workbook.worksheets:
            out.append(_sheet_header(sheet.title))
            out.append(_rows_to_csv(sheet.iter_rows(values_only=True)))
        return "".join(out)
    finally:
        workbook.close()


def _xls_text(data: bytes) -> str:
    import xlrd

    workbook = xlrd.open_workbook(file_contents=data)
    out: List[str] = []
    for sheet in workbook.sheets():
        out.append(_sheet_header(sheet.name))
        out.append(_rows_to_csv(sheet.row_values(idx) for idx in range(sheet.nrows)))
    return "".join(out)


class DocumentExtractor:
    """Default TextExtractor: python-docx, openpyxl, xlrd and plain UTF-8."""

    def extract(self, document: CaseDocument) -> str:
        kind = classify(document)
        if kind is DocumentKind.WORD:
            return _docx_text(document.data)
        if kind is DocumentKind.SPREADSHEET:
            if document.extension == ".xls":
                return _xls_text(document.data)
            return _xlsx_text(document.data)
        if kind is DocumentKind.TEXT:
            return document.data.decode("utf-8")
        raise UnsupportedFormatError(
            f"O arquivo '{document.name}' não é convertido em texto; ele é enviado diretamente ao modelo.",
            details={"file": document.name},
        )


def _unique_name(name: str, taken: ExtractedText) -> str:
    if name not in taken:
        return name
    n = 2
    while f"{name} ({n})" in taken:
        n += 1
    return f"{name} ({n})"


def extract_documents(
    documents: Sequence[CaseDocument], extractor: TextExtractor | None = None
) -> ExtractionResult:
    """
    Split case files into extracted text and native parts.

    Any failure aborts the whole batch; no partial result is returned. Files
    sharing a name are kept apart as ``name (2)``, ``name (3)``...
    """
    extractor = extractor or DocumentExtractor()
    result = ExtractionResult()
    for document in documents:
        kind = classify(document)
        if kind is DocumentKind.NATIVE:
            result.native.append(document)
            continue
        try:
            text = extractor.extract(document)
        except StudioError:
            raise
        except Exception as exc:
            logger.error("extraction.failed", file=document.name, kind=kind.value, error=str(exc))
            detail = str(exc) or "não foi possível extrair o conteúdo"
            raise ExtractionError(
                document.name,
                f"Falha ao processar o arquivo '{document.name}': {detail}. "
                "Verifique se o arquivo não está corrompido e se o formato é .docx (para Word).",
            ) from exc
        result.texts[_unique_name(document.name, result.texts)] = text
    logger.info("extraction.done", converted=len(result.texts), native=len(result.native))
    return result


def load_template(document: CaseDocument, extractor: TextExtractor | None = None) -> TemplateDocument:
    validate_upload(document.name, document.mime_type, TEMPLATE_ACCEPT)
    extractor = extractor or DocumentExtractor()
    try:
        if document.extension in WORD_EXTENSIONS:
            text = extractor.extract(document)
        else:
            text = document.data.decode("utf-8")
    except Exception as exc:
        logger.error("template.failed", file=document.name, error=str(exc))
        raise ExtractionError(
            document.name,
            f"Falha ao processar o arquivo de modelo '{document.name}'. Verifique se o arquivo não está "
            "corrompido e se o formato é suportado (.docx, .txt).",
        ) from exc
    return TemplateDocument(name=document.name, text=text)


def render_extracted(texts: ExtractedText) -> str:
    return "".join(
        f"\n\n--- INÍCIO DO CONTEÚDO DO ARQUIVO: {name} ---\n{text}\n--- FIM DO CONTEÚDO DO ARQUIVO: {name} ---\n"
        for name, text in texts.items()
    )
