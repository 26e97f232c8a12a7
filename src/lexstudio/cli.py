"""
Command line entry point.

Usage:
    lexstudio petition caso.pdf contrato.docx --template modelo.docx --format docx --output peticao.docx
    lexstudio post "Horas extras" --ratio 4:5 --out-dir posts/ --save
    lexstudio query "Qual o prazo prescricional ..." --save "Prescrição"
    lexstudio history list
    lexstudio --mode static petition caso.txt
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import orjson
import structlog

from .core.config import Settings
from .core.errors import InputValidationError, StudioError
from .core.utils import configure_logging
from .extraction import CASE_DOCUMENT_ACCEPT, CaseDocument, validate_upload
from .history import PetitionHistory, PostHistory, QueryHistory, recent_items
from .llm import GeminiClient, GenerationClient, StaticGenerationClient
from .panel import GenerationPanel, SaveStatus
from .petitions import PetitionService, default_petition_title
from .petitions.export import export_docx, export_word_html
from .petitions.renderer import render_viewer_html
from .posts import PostService
from .posts.prompts import POST_FORMATS
from .posts.renderer import write_post
from .queries import QueryService, default_query_title

logger = structlog.get_logger()

STATIC_PETITION = (
    "EXCELENTÍSSIMO SENHOR DOUTOR JUIZ DA VARA DO TRABALHO DE [CIDADE/UF]\n\n"
    "DOS FATOS\n"
    "O reclamante foi admitido em [INFORMAÇÃO NÃO ENCONTRADA NO DOCUMENTO].\n\n"
    "CÁLCULO ESTIMADO DOS VALORES DA CAUSA\n"
    "VALOR TOTAL ESTIMADO DA CAUSA: R$ 0,00\n"
)
STATIC_POST = {
    "title": "Horas extras: conheça seus direitos",
    "subtitle": "O que a CLT garante ao trabalhador",
    "copy": "A jornada que ultrapassa o limite legal deve ser remunerada com adicional.",
    "hashtags": ["#direitodotrabalho", "#horasextras", "#clt", "#advocacia", "#trabalhador"],
    "seoKeywords": ["horas extras", "direito do trabalho", "CLT"],
}


def _client(mode: str, settings: Settings) -> GenerationClient:
    if mode == "static":
        return StaticGenerationClient(text=STATIC_PETITION, structured=orjson.dumps(STATIC_POST).decode())
    return GeminiClient(settings)


def _read(path: Path) -> CaseDocument:
    try:
        return CaseDocument.from_path(path)
    except OSError as exc:
        logger.error("cli.read_failed", file=str(path), error=str(exc))
        raise InputValidationError(
            f"Não foi possível ler o arquivo '{path}': {exc.strerror or exc}", details={"file": str(path)}
        ) from exc


def _doc(path: Optional[Path]) -> Optional[CaseDocument]:
    return _read(path) if path is not None else None


def _case_documents(paths: List[Path]) -> List[CaseDocument]:
    documents = [_read(p) for p in paths]
    for doc in documents:
        validate_upload(doc.name, doc.mime_type, CASE_DOCUMENT_ACCEPT)
    return documents


def _report(panel: GenerationPanel) -> int:
    if panel.error:
        print(f"Erro: {panel.error}", file=sys.stderr)
        return 1
    return 0


def _report_save(status: SaveStatus, what: str) -> None:
    if status is SaveStatus.SAVED:
        print(f"{what} salvo(a) no histórico.")
    elif status is SaveStatus.SAVE_FAILED:
        print(f"Falha ao salvar {what.lower()} no histórico.", file=sys.stderr)


def cmd_petition(args: argparse.Namespace, settings: Settings) -> int:
    service = PetitionService(_client(args.mode, settings), firm=settings.firm)
    documents = _case_documents(args.documents)
    template = _doc(args.template)

    panel: GenerationPanel = GenerationPanel("petition", reset_after=settings.save_reset_seconds)
    draft = asyncio.run(panel.submit(lambda: service.draft_reviewed(documents, template)))
    if draft is None:
        return _report(panel)

    if args.output is None:
        print(draft.text)
    elif args.format == "docx":
        export_docx(args.output, draft.text)
    elif args.format == "doc":
        export_word_html(args.output, draft.text)
    elif args.format == "html":
        args.output.write_text(render_viewer_html(draft.text), encoding="utf-8")
    else:
        args.output.write_text(draft.text, encoding="utf-8")
    if args.output is not None:
        print(f"Salvo em: {args.output}")
    for warning in draft.qa_warnings:
        print(f"Aviso: {warning}", file=sys.stderr)

    if args.save is not None:
        title = args.save or default_petition_title()
        history = PetitionHistory(settings.storage())
        _report_save(panel.save(lambda d: history.add(title, d.text)), "Petição")
    return 0


def cmd_post(args: argparse.Namespace, settings: Settings) -> int:
    service = PostService(_client(args.mode, settings))
    style, logo = _doc(args.style), _doc(args.logo)
    panel: GenerationPanel = GenerationPanel("post", reset_after=settings.save_reset_seconds)
    result = asyncio.run(panel.submit(lambda: service.generate_post(args.theme, args.ratio, style, logo)))
    if result is None:
        return _report(panel)

    for label, path in write_post(args.out_dir, result).items():
        print(f"{label}: {path}")
    if args.save:
        history = PostHistory(settings.storage())
        _report_save(panel.save(history.add), "Post")
    return 0


def cmd_query(args: argparse.Namespace, settings: Settings) -> int:
    service = QueryService(_client(args.mode, settings))
    panel: GenerationPanel = GenerationPanel("query", reset_after=settings.save_reset_seconds)
    answer = asyncio.run(panel.submit(lambda: service.ask(args.prompt)))
    if answer is None:
        return _report(panel)

    print(answer)
    if args.save is not None:
        title = args.save or default_query_title()
        history = QueryHistory(settings.storage())
        _report_save(panel.save(lambda text: history.add(title, text)), "Consulta")
    return 0


def _stores(settings: Settings) -> dict:
    storage = settings.storage()
    return {
        "petition": PetitionHistory(storage),
        "post": PostHistory(storage),
        "query": QueryHistory(storage),
    }


def cmd_history(args: argparse.Namespace, settings: Settings) -> int:
    stores = _stores(settings)
    if args.action == "recent":
        for item in recent_items(stores.values(), limit=args.limit):
            print(f"{item.saved_at:%d/%m/%Y %H:%M}  {item.kind:<8} {item.id}  {item.title}")
        return 0

    store = stores[args.kind]
    if args.action == "list":
        for item in store.items():
            print(f"{item.saved_at:%d/%m/%Y %H:%M}  {item.id}  {item.title}")
        return 0

    if not args.id:
        print("Erro: informe o id do registro.", file=sys.stderr)
        return 2
    if args.action == "show":
        record = store.get(args.id)
        if record is None:
            print(f"Registro não encontrado: {args.id}", file=sys.stderr)
            return 1
        print(orjson.dumps(record.model_dump(mode="json", by_alias=True), option=orjson.OPT_INDENT_2).decode())
    elif args.action == "rename":
        if not args.title:
            print("Erro: informe --title.", file=sys.stderr)
            return 2
        if args.kind == "post":
            record = store.get(args.id)
            if record is not None:
                content = record.post.post_content.model_copy(update={"title": args.title})
                store.update(args.id, post=record.post.model_copy(update={"post_content": content}))
        else:
            store.update(args.id, title=args.title)
    elif args.action == "delete":
        store.delete(args.id)
    return 0


def cmd_api_key(args: argparse.Namespace, settings: Settings) -> int:
    key_store = settings.key_store()
    if args.action == "set":
        key_store.set(args.value or "")
        print("Chave de API salva.")
    elif args.action == "clear":
        key_store.clear()
        print("Chave de API removida.")
    else:
        key = key_store.get()
        print(f"{key[:4]}…{key[-4:]}" if key else "Nenhuma chave configurada.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lexstudio")
    parser.add_argument("--mode", choices=["static", "gemini"], default="gemini")
    parser.add_argument("--home", type=Path, default=None, help="Config/history directory (default: ~/.lexstudio).")
    parser.add_argument("--json-logs", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    petition = sub.add_parser("petition", help="Draft an initial petition from case documents.")
    petition.add_argument("documents", nargs="*", type=Path)
    petition.add_argument("--template", type=Path, default=None, help=".docx or .txt template (optional).")
    petition.add_argument("--output", type=Path, default=None)
    petition.add_argument("--format", choices=["txt", "html", "doc", "docx"], default="txt")
    petition.add_argument("--save", nargs="?", const="", default=None, metavar="TITLE")
    petition.set_defaults(func=cmd_petition)

    post = sub.add_parser("post", help="Generate a social-media post with two images.")
    post.add_argument("theme")
    post.add_argument("--ratio", default=POST_FORMATS[0].value, help="Aspect ratio, e.g. 4:5, 1:1, 9:16.")
    post.add_argument("--style", type=Path, default=None, help="Style reference image.")
    post.add_argument("--logo", type=Path, default=None, help="Logo image.")
    post.add_argument("--out-dir", type=Path, default=Path("."))
    post.add_argument("--save", action="store_true")
    post.set_defaults(func=cmd_post)

    query = sub.add_parser("query", help="Ask a complex legal question.")
    query.add_argument("prompt")
    query.add_argument("--save", nargs="?", const="", default=None, metavar="TITLE")
    query.set_defaults(func=cmd_query)

    history = sub.add_parser("history", help="Inspect saved petitions, posts and queries.")
    history.add_argument("action", choices=["recent", "list", "show", "rename", "delete"])
    history.add_argument("--kind", choices=["petition", "post", "query"], default="petition")
    history.add_argument("--id", default=None)
    history.add_argument("--title", default=None)
    history.add_argument("--limit", type=int, default=5)
    history.set_defaults(func=cmd_history)

    api_key = sub.add_parser("api-key", help="Manage the stored Gemini API key.")
    api_key.add_argument("action", choices=["set", "clear", "show"])
    api_key.add_argument("value", nargs="?", default=None)
    api_key.set_defaults(func=cmd_api_key)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(json=args.json_logs, level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        settings = Settings.load(args.home)
        return args.func(args, settings)
    except StudioError as exc:
        logger.error("cli.failed", command=args.command, code=exc.code)
        print(f"Erro: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
