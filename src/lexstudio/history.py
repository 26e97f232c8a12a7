"""
Saved-history stores for petitions, posts and complex queries.

Each store keeps one JSON array under a fixed storage key. Every operation
is a full read-modify-write of that array; there is no locking, so two
processes writing the same store race and the last write wins.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, Iterable, List, Literal, Type, TypeVar

import orjson
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .core.errors import StorageError
from .core.storage import KeyValueStorage
from .core.utils import new_id, utcnow
from .posts.schema import PostResult

logger = structlog.get_logger()

PETITION_HISTORY_KEY = "petition_history"
POST_HISTORY_KEY = "post_history"
QUERY_HISTORY_KEY = "complex_query_history"

IMMUTABLE_FIELDS = frozenset({"id", "saved_at", "savedAt"})


class SavedRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id)
    saved_at: datetime = Field(default_factory=utcnow, alias="savedAt")


class SavedPetition(SavedRecord):
    title: str
    content: str


class SavedQuery(SavedRecord):
    title: str
    content: str


class SavedPost(SavedRecord):
    post: PostResult


HistoryKind = Literal["Petição", "Post", "Consulta"]


class HistoryItem(BaseModel):
    id: str
    title: str
    saved_at: datetime
    kind: HistoryKind


R = TypeVar("R", bound=SavedRecord)


class HistoryStore(Generic[R]):
    kind: HistoryKind

    def __init__(self, storage: KeyValueStorage, key: str, record_type: Type[R]) -> None:
        self.storage = storage
        self.key = key
        self.record_type = record_type

    def _load(self) -> List[R]:
        try:
            raw = self.storage.get_item(self.key)
        except OSError as exc:
            logger.error("history.read_failed", key=self.key, error=str(exc))
            return []
        if not raw:
            return []
        try:
            data = orjson.loads(raw)
            if not isinstance(data, list):
                raise ValueError("history payload is not a list")
            return [self.record_type.model_validate(item) for item in data]
        except (orjson.JSONDecodeError, ValueError, ValidationError) as exc:
            logger.error("history.corrupted", key=self.key, error=str(exc))
            return []

    def _save(self, records: List[R]) -> None:
        payload = orjson.dumps([r.model_dump(mode="json", by_alias=True) for r in records])
        try:
            self.storage.set_item(self.key, payload.decode())
        except OSError as exc:
            logger.error("history.write_failed", key=self.key, error=str(exc))
            raise StorageError(self.key, "Falha ao salvar no histórico.", details={"error": str(exc)}) from exc

    def _add(self, record: R) -> R:
        records = self._load()
        self._save([record, *records])
        logger.info("history.added", key=self.key, id=record.id)
        return record

    def get_all(self) -> List[R]:
        return self._load()

    def get(self, record_id: str) -> R | None:
        return next((r for r in self._load() if r.id == record_id), None)

    def update(self, record_id: str, **updates: Any) -> None:
        records = self._load()
        for idx, record in enumerate(records):
            if record.id != record_id:
                continue
            changes = {k: v for k, v in updates.items() if k not in IMMUTABLE_FIELDS}
            merged = {**record.model_dump(), **changes}
            records[idx] = self.record_type.model_validate(merged)
            self._save(records)
            logger.info("history.updated", key=self.key, id=record_id, fields=sorted(changes))
            return
        logger.warning("history.update_missing", key=self.key, id=record_id)

    def delete(self, record_id: str) -> None:
        records = self._load()
        remaining = [r for r in records if r.id != record_id]
        self._save(remaining)
        logger.info("history.deleted", key=self.key, id=record_id, removed=len(records) - len(remaining))

    def items(self) -> List[HistoryItem]:
        return [
            HistoryItem(id=r.id, title=self.title_of(r), saved_at=r.saved_at, kind=self.kind)
            for r in self._load()
        ]

    def title_of(self, record: R) -> str:
        return getattr(record, "title", "")


class PetitionHistory(HistoryStore[SavedPetition]):
    kind: HistoryKind = "Petição"

    def __init__(self, storage: KeyValueStorage) -> None:
        super().__init__(storage, PETITION_HISTORY_KEY, SavedPetition)

    def add(self, title: str, content: str) -> SavedPetition:
        return self._add(SavedPetition(title=title, content=content))


class QueryHistory(HistoryStore[SavedQuery]):
    kind: HistoryKind = "Consulta"

    def __init__(self, storage: KeyValueStorage) -> None:
        super().__init__(storage, QUERY_HISTORY_KEY, SavedQuery)

    def add(self, title: str, content: str) -> SavedQuery:
        return self._add(SavedQuery(title=title, content=content))


class PostHistory(HistoryStore[SavedPost]):
    kind: HistoryKind = "Post"

    def __init__(self, storage: KeyValueStorage) -> None:
        super().__init__(storage, POST_HISTORY_KEY, SavedPost)

    def add(self, post: PostResult) -> SavedPost:
        return self._add(SavedPost(post=post))

    def title_of(self, record: SavedPost) -> str:
        return record.post.post_content.title


def recent_items(stores: Iterable[HistoryStore[Any]], limit: int = 5) -> List[HistoryItem]:
    merged = [item for store in stores for item in store.items()]
    merged.sort(key=lambda item: item.saved_at, reverse=True)
    return merged[:limit]
