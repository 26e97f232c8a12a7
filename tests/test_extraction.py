import io

import pytest

from lexstudio.core.errors import ExtractionError, UnsupportedFormatError
from lexstudio.extraction import (
    IMAGE_ACCEPT,
    CaseDocument,
    DocumentKind,
    TemplateDocument,
    classify,
    extract_documents,
    load_template,
    render_extracted,
    validate_upload,
)


def _docx_bytes() -> bytes:
    from docx import Document

    doc = Document()
    doc.add_paragraph("Reclamante: João da Silva")
    doc.add_paragraph("Admissão em 01/02/2020")
    table = doc.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Salário"
    table.rows[0].cells[1].text = "R$ 2.500,00"
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def _xlsx_bytes() -> bytes:
    from openpyxl import Workbook

    wb = Workbook()
    first = wb.active
    first.title = "Resumo"
    first.append(["Verba", "Valor"])
    first.append(["Aviso prévio", 2500])
    second = wb.create_sheet("Horas")
    second.append(["Mês", "Horas"])
    second.append(["Janeiro", 12])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_classify_by_extension_and_mime():
    assert classify(CaseDocument(name="a.docx", data=b"")) is DocumentKind.WORD
    assert classify(CaseDocument(name="a.XLSX", data=b"")) is DocumentKind.SPREADSHEET
    assert classify(CaseDocument(name="a.xls", data=b"")) is DocumentKind.SPREADSHEET
    assert classify(CaseDocument(name="notas.txt", mime_type="text/plain", data=b"")) is DocumentKind.TEXT
    assert classify(CaseDocument(name="ctps.pdf", mime_type="application/pdf", data=b"")) is DocumentKind.NATIVE
    assert classify(CaseDocument(name="foto.jpg", mime_type="image/jpeg", data=b"")) is DocumentKind.NATIVE


def test_legacy_doc_is_rejected_with_resave_hint():
    with pytest.raises(UnsupportedFormatError) as exc:
        classify(CaseDocument(name="Contrato.doc", mime_type="application/msword", data=b"x"))
    assert ".docx" in str(exc.value)
    assert "Contrato.doc" in str(exc.value)


def test_unknown_binary_type_is_unsupported():
    with pytest.raises(UnsupportedFormatError):
        classify(CaseDocument(name="pacote.zip", mime_type="application/zip", data=b"x"))


def test_docx_text_keeps_paragraphs_and_tables():
    pytest.importorskip("docx")
    result = extract_documents([CaseDocument(name="fatos.docx", data=_docx_bytes())])
    text = result.texts["fatos.docx"]
    assert "Reclamante: João da Silva" in text
    assert "Admissão em 01/02/2020" in text
    assert "Salário\tR$ 2.500,00" in text
    assert result.native == []


def test_spreadsheet_sheets_in_workbook_order():
    pytest.importorskip("openpyxl")
    result = extract_documents([CaseDocument(name="calculo.xlsx", data=_xlsx_bytes())])
    text = result.texts["calculo.xlsx"]
    assert text.index("--- Planilha: Resumo ---") < text.index("--- Planilha: Horas ---")
    assert "Verba,Valor" in text
    assert "Aviso prévio,2500" in text
    assert "Janeiro,12" in text


def test_plain_text_passes_through_and_native_parts_are_kept():
    notes = CaseDocument(name="notas.txt", mime_type="text/plain", data="Horas extras habituais.".encode())
    scan = CaseDocument(name="ctps.pdf", mime_type="application/pdf", data=b"%PDF-1.4")
    result = extract_documents([notes, scan])
    assert result.texts == {"notas.txt": "Horas extras habituais."}
    assert [doc.name for doc in result.native] == ["ctps.pdf"]
    assert result.native_parts[0].mime_type == "application/pdf"
    assert result.native_parts[0].data == b"%PDF-1.4"


def test_same_name_uploads_are_all_kept():
    first = CaseDocument(name="fatos.txt", mime_type="text/plain", data=b"PRIMEIRO")
    second = CaseDocument(name="fatos.txt", mime_type="text/plain", data=b"SEGUNDO")
    third = CaseDocument(name="fatos.txt", mime_type="text/plain", data=b"TERCEIRO")
    result = extract_documents([first, second, third])
    assert result.texts == {"fatos.txt": "PRIMEIRO", "fatos.txt (2)": "SEGUNDO", "fatos.txt (3)": "TERCEIRO"}


def test_corrupted_file_aborts_whole_batch():
    pytest.importorskip("docx")
    good = CaseDocument(name="notas.txt", mime_type="text/plain", data=b"ok")
    broken = CaseDocument(name="quebrado.docx", data=b"isto nao e um zip")
    with pytest.raises(ExtractionError) as exc:
        extract_documents([good, broken])
    assert exc.value.file_name == "quebrado.docx"
    assert "quebrado.docx" in str(exc.value)
    assert "corrompido" in str(exc.value)


def test_legacy_doc_in_batch_is_not_wrapped():
    with pytest.raises(UnsupportedFormatError):
        extract_documents([CaseDocument(name="antigo.doc", data=b"x")])


def test_validate_upload_rules():
    validate_upload("logo.png", "image/png", IMAGE_ACCEPT)
    validate_upload("modelo.docx", "", ".docx,.txt")
    with pytest.raises(UnsupportedFormatError) as exc:
        validate_upload("contrato.pdf", "application/pdf", IMAGE_ACCEPT)
    assert "image/*" in str(exc.value)
    with pytest.raises(UnsupportedFormatError) as exc:
        validate_upload("modelo.doc", "application/msword", "*/*")
    assert ".docx" in str(exc.value)


def test_load_template_from_text_file():
    template = load_template(
        CaseDocument(name="modelo.txt", mime_type="text/plain", data="DOS FATOS\n$$LOCKED START$$x$$LOCKED END$$".encode())
    )
    assert isinstance(template, TemplateDocument)
    assert template.text.startswith("DOS FATOS")


def test_load_template_rejects_other_formats():
    with pytest.raises(UnsupportedFormatError):
        load_template(CaseDocument(name="modelo.pdf", mime_type="application/pdf", data=b"%PDF"))


def test_render_extracted_wraps_each_file():
    rendered = render_extracted({"a.txt": "primeiro", "b.txt": "segundo"})
    assert "--- INÍCIO DO CONTEÚDO DO ARQUIVO: a.txt ---\nprimeiro\n--- FIM DO CONTEÚDO DO ARQUIVO: a.txt ---" in rendered
    assert rendered.index("a.txt") < rendered.index("b.txt")
    assert render_extracted({}) == ""


def test_from_path_guesses_mime(tmp_path):
    path = tmp_path / "ctps.pdf"
    path.write_bytes(b"%PDF-1.4")
    doc = CaseDocument.from_path(path)
    assert doc.name == "ctps.pdf"
    assert doc.mime_type == "application/pdf"
    assert doc.data == b"%PDF-1.4"
