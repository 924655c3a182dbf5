"""
Persistence backend tests - verifies the document contract, snapshot feed
and JSON file creation
"""
import json
from datetime import date, timedelta
from pathlib import Path

import pytest

from app.core.errors import NotFoundError, PersistenceError
from app.database.backend import APPOINTMENTS, PATIENTS, MemoryBackend, Query, to_jsonable
from app.database.cache import TTLCache
from app.database.storage import JsonFileBackend
from app.services.store import PatientStore


@pytest.mark.asyncio
async def test_create_stamps_server_timestamps():
    backend = MemoryBackend()
    doc_id = await backend.create(PATIENTS, {"name": "Asha", "age": 30})
    doc = await backend.get(PATIENTS, doc_id)
    assert doc["id"] == doc_id
    assert doc["name"] == "Asha"
    assert doc["created_at"] == doc["updated_at"]


@pytest.mark.asyncio
async def test_update_merges_and_bumps_updated_at():
    backend = MemoryBackend()
    doc_id = await backend.create(PATIENTS, {"name": "Asha", "age": 30})
    await backend.update(PATIENTS, doc_id, {"age": 31})
    doc = await backend.get(PATIENTS, doc_id)
    assert doc["age"] == 31
    assert doc["name"] == "Asha"
    assert doc["updated_at"] >= doc["created_at"]


@pytest.mark.asyncio
async def test_missing_documents_raise_not_found():
    backend = MemoryBackend()
    with pytest.raises(NotFoundError):
        await backend.get(PATIENTS, "nope")
    with pytest.raises(NotFoundError):
        await backend.update(PATIENTS, "nope", {"age": 1})
    with pytest.raises(NotFoundError):
        await backend.delete(PATIENTS, "nope")


@pytest.mark.asyncio
async def test_get_all_orders_and_filters():
    backend = MemoryBackend()
    today = date.today()
    for offset in (3, -1, 1):
        await backend.create(APPOINTMENTS, {"date": today + timedelta(days=offset)})
    query = Query(order_by="date", where=lambda doc: doc["date"] >= today.isoformat())
    docs = await backend.get_all(APPOINTMENTS, query)
    assert [doc["date"] for doc in docs] == [
        (today + timedelta(days=1)).isoformat(),
        (today + timedelta(days=3)).isoformat(),
    ]

    first = await backend.create(PATIENTS, {"name": "first"})
    second = await backend.create(PATIENTS, {"name": "second"})
    newest_first = await backend.get_all(PATIENTS, Query(order_by="created_at", descending=True))
    assert [doc["id"] for doc in newest_first] == [second, first]


@pytest.mark.asyncio
async def test_subscription_delivers_full_snapshots():
    backend = MemoryBackend()
    await backend.create(PATIENTS, {"name": "existing"})
    subscription = backend.subscribe(PATIENTS)

    initial = await subscription.__anext__()
    assert [doc["name"] for doc in initial] == ["existing"]

    doc_id = await backend.create(PATIENTS, {"name": "new"})
    after_create = await subscription.__anext__()
    assert len(after_create) == 2

    await backend.delete(PATIENTS, doc_id)
    after_delete = await subscription.__anext__()
    assert [doc["name"] for doc in after_delete] == ["existing"]

    subscription.close()
    with pytest.raises(StopAsyncIteration):
        await subscription.__anext__()


def test_to_jsonable_converts_nested_dates():
    value = to_jsonable({"date": date(2026, 1, 2), "items": [{"d": date(2026, 1, 3)}]})
    assert value == {"date": "2026-01-02", "items": [{"d": "2026-01-03"}]}


@pytest.mark.asyncio
async def test_json_backend_creates_collection_file(tmp_path):
    backend = JsonFileBackend(data_dir=str(tmp_path), cache_ttl_seconds=60)
    doc_id = await backend.create(PATIENTS, {"name": "सीता", "age": 28})

    patient_file = Path(tmp_path) / "patients.json"
    assert patient_file.exists(), f"Patient file should be created at {patient_file}"
    with open(patient_file, 'r', encoding='utf-8') as f:
        saved = json.load(f)
    assert len(saved) == 1
    assert saved[0]["id"] == doc_id
    assert saved[0]["name"] == "सीता"


@pytest.mark.asyncio
async def test_json_backend_reloads_from_disk(tmp_path):
    first = JsonFileBackend(data_dir=str(tmp_path))
    doc_id = await first.create(PATIENTS, {"name": "Asha", "age": 30})
    await first.update(PATIENTS, doc_id, {"age": 31})

    second = JsonFileBackend(data_dir=str(tmp_path))
    doc = await second.get(PATIENTS, doc_id)
    assert doc["age"] == 31

    await second.delete(PATIENTS, doc_id)
    third = JsonFileBackend(data_dir=str(tmp_path))
    assert await third.get_all(PATIENTS) == []


@pytest.mark.asyncio
async def test_json_backend_write_failure_is_persistence_error(tmp_path, low_risk_patient):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store = PatientStore(JsonFileBackend(data_dir=str(blocker)))

    with pytest.raises(PersistenceError):
        await store.add_patient(low_risk_patient)
    assert store.list_patients() == []


def test_cache_loads_once_until_expired():
    cache = TTLCache(ttl_seconds=60)
    loads = []
    for _ in range(3):
        cache.get_or_load("collection:patients", lambda: loads.append(1) or {"p1": {}})
    assert len(loads) == 1
    assert cache.hits == 2

    expired = TTLCache(ttl_seconds=0)
    expired.set("collection:patients", {})
    assert expired.get("collection:patients") is None


@pytest.mark.asyncio
async def test_json_backend_reads_external_edits_after_ttl(tmp_path):
    backend = JsonFileBackend(data_dir=str(tmp_path), cache_ttl_seconds=0)
    await backend.create(PATIENTS, {"name": "Asha"})
    with open(tmp_path / "patients.json", 'w', encoding='utf-8') as f:
        json.dump([{"id": "external", "name": "Edited"}], f)
    docs = await backend.get_all(PATIENTS)
    assert [doc["id"] for doc in docs] == ["external"]


@pytest.mark.asyncio
async def test_json_backend_failed_write_keeps_previous_file(tmp_path, monkeypatch, low_risk_patient):
    store = PatientStore(JsonFileBackend(data_dir=str(tmp_path)))
    await store.add_patient({**low_risk_patient, "name": "Kept"})

    def interrupted_dump(data, f, **kwargs):
        f.write("[{")
        raise OSError("disk full")

    monkeypatch.setattr(json, "dump", interrupted_dump)
    with pytest.raises(PersistenceError):
        await store.add_patient({**low_risk_patient, "name": "Lost"})
    monkeypatch.undo()

    fresh = PatientStore(JsonFileBackend(data_dir=str(tmp_path)))
    status = await fresh.load()
    assert status[PATIENTS] is True
    assert [p.name for p in fresh.list_patients()] == ["Kept"]
    assert list(tmp_path.glob(".*.tmp")) == []


@pytest.mark.asyncio
async def test_corrupt_collection_file_is_not_read_as_empty(tmp_path, low_risk_patient):
    (tmp_path / "patients.json").write_text("[{", encoding="utf-8")
    store = PatientStore(JsonFileBackend(data_dir=str(tmp_path)))

    status = await store.load()
    assert status == {PATIENTS: False, APPOINTMENTS: True, "visits": True, "alerts": True}

    with pytest.raises(PersistenceError):
        await store.add_patient(low_risk_patient)
    assert (tmp_path / "patients.json").read_text(encoding="utf-8") == "[{"
