import orjson
import pytest

from lexstudio.core.errors import StorageError
from lexstudio.core.storage import FileStorage, MemoryStorage
from lexstudio.history import (
    PETITION_HISTORY_KEY,
    QUERY_HISTORY_KEY,
    PetitionHistory,
    PostHistory,
    QueryHistory,
    recent_items,
)
from lexstudio.posts.schema import PostContent, PostResult


def _post(title: str = "Horas extras") -> PostResult:
    return PostResult(
        post_content=PostContent(
            title=title, subtitle="Sub", copy_text="Texto", hashtags=["#clt"], seo_keywords=["clt"]
        ),
        image_url_with_text="data:image/png;base64,AA==",
        image_url_without_text="data:image/png;base64,AQ==",
    )


def test_add_then_get_all_returns_newest_first():
    store = PetitionHistory(MemoryStorage())
    first = store.add("Petição A", "texto A")
    second = store.add("Petição B", "texto B")
    records = store.get_all()
    assert [r.id for r in records] == [second.id, first.id]
    assert first.id != second.id


def test_records_are_stored_as_camel_case_json():
    storage = MemoryStorage()
    PostHistory(storage).add(_post())
    raw = orjson.loads(storage.items["post_history"])
    assert "savedAt" in raw[0]
    assert raw[0]["post"]["postContent"]["seoKeywords"] == ["clt"]
    assert raw[0]["post"]["imageUrlWithText"].startswith("data:image/png")


def test_update_changes_fields_but_not_identity():
    store = QueryHistory(MemoryStorage())
    record = store.add("Consulta", "resposta")
    store.update(record.id, title="Prescrição", id="outro", saved_at="2000-01-01T00:00:00Z")
    updated = store.get(record.id)
    assert updated is not None
    assert updated.title == "Prescrição"
    assert updated.content == "resposta"
    assert updated.saved_at == record.saved_at


def test_update_missing_id_is_a_noop():
    storage = MemoryStorage()
    store = PetitionHistory(storage)
    store.add("Petição", "texto")
    before = storage.items[PETITION_HISTORY_KEY]
    store.update("nao-existe", title="Outro")
    assert storage.items[PETITION_HISTORY_KEY] == before


def test_delete_removes_exactly_one_and_keeps_order():
    store = PetitionHistory(MemoryStorage())
    a = store.add("A", "a")
    b = store.add("B", "b")
    c = store.add("C", "c")
    store.delete(b.id)
    assert [r.id for r in store.get_all()] == [c.id, a.id]
    store.delete("nao-existe")
    assert [r.id for r in store.get_all()] == [c.id, a.id]


@pytest.mark.parametrize("payload", ["{corrompido", '{"a": 1}', '[{"id": 1}]'])
def test_corrupted_store_reads_as_empty(payload):
    store = QueryHistory(MemoryStorage({QUERY_HISTORY_KEY: payload}))
    assert store.get_all() == []
    assert store.items() == []


def test_post_history_title_comes_from_content():
    store = PostHistory(MemoryStorage())
    store.add(_post("Rescisão indireta"))
    items = store.items()
    assert items[0].title == "Rescisão indireta"
    assert items[0].kind == "Post"


def test_recent_items_merges_stores_newest_first():
    def record(idx: int) -> dict:
        return {"id": f"r{idx}", "savedAt": f"2024-01-{idx:02d}T10:00:00Z", "title": f"T{idx}", "content": "x"}

    storage = MemoryStorage(
        {
            PETITION_HISTORY_KEY: orjson.dumps([record(1), record(5), record(7)]).decode(),
            QUERY_HISTORY_KEY: orjson.dumps([record(2), record(6), record(3), record(4)]).decode(),
        }
    )
    items = recent_items([PetitionHistory(storage), PostHistory(storage), QueryHistory(storage)])
    assert [item.id for item in items] == ["r7", "r6", "r5", "r4", "r3"]
    assert [item.kind for item in items[:2]] == ["Petição", "Consulta"]


class BrokenStorage(MemoryStorage):
    def set_item(self, key: str, value: str) -> None:
        raise OSError("disco cheio")


def test_write_failure_raises_storage_error():
    store = PetitionHistory(BrokenStorage())
    with pytest.raises(StorageError) as exc:
        store.add("Petição", "texto")
    assert exc.value.key == PETITION_HISTORY_KEY


def test_file_storage_round_trip(tmp_path):
    store = PetitionHistory(FileStorage(tmp_path))
    saved = store.add("Petição", "texto")
    assert (tmp_path / f"{PETITION_HISTORY_KEY}.json").exists()
    reopened = PetitionHistory(FileStorage(tmp_path))
    assert reopened.get(saved.id).content == "texto"
