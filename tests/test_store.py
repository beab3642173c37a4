import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.dialects import mysql
from sqlalchemy.schema import CreateTable
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from string_analyzer.crud.store import (
    InMemoryRecordStore,
    RecordStore,
    JsonFileRecordStore,
    SQLAlchemyRecordStore,
    build_store,
)
from string_analyzer.database import init_db
from string_analyzer.exceptions import StorageFailure
from string_analyzer.models.string_record import StringAnalysis
from string_analyzer.schemas.string_record import StringRecord
from string_analyzer.services.analyzer import analyze


def make_record(value):
    props = analyze(value)
    return StringRecord(
        id=props.sha256_hash,
        value=value,
        properties=props,
        created_at=datetime.now(timezone.utc),
    )


def make_sql_store():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    return SQLAlchemyRecordStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))


@pytest.fixture(params=["memory", "json", "sql"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryRecordStore()
    if request.param == "json":
        return JsonFileRecordStore(str(tmp_path / "data.json"))
    return make_sql_store()


def test_insert_then_get_round_trip(any_store):
    record = make_record("Hello World")
    assert any_store.insert_if_absent(record) is True

    fetched = any_store.get_by_value("Hello World")
    assert fetched.id == record.id
    assert fetched.properties == analyze("Hello World")
    assert fetched.created_at == record.created_at


def test_insert_duplicate_is_rejected(any_store):
    assert any_store.insert_if_absent(make_record("dup")) is True
    assert any_store.insert_if_absent(make_record("dup")) is False
    assert [r.value for r in any_store.list()] == ["dup"]


def test_values_are_case_sensitive(any_store):
    assert any_store.insert_if_absent(make_record("abc")) is True
    assert any_store.insert_if_absent(make_record("ABC")) is True
    assert any_store.get_by_value("Abc") is None


def test_list_keeps_insertion_order(any_store):
    for value in ("zeta", "alpha", "mid"):
        any_store.insert_if_absent(make_record(value))
    assert [r.value for r in any_store.list()] == ["zeta", "alpha", "mid"]


def test_delete_twice(any_store):
    any_store.insert_if_absent(make_record("gone"))
    assert any_store.delete_by_value("gone") is True
    assert any_store.delete_by_value("gone") is False
    assert any_store.get_by_value("gone") is None
    assert any_store.list() == []


def test_json_store_missing_or_blank_file_is_empty(tmp_path):
    path = tmp_path / "data.json"
    store = JsonFileRecordStore(str(path))
    assert store.list() == []
    path.write_text("   \n")
    assert store.list() == []


@pytest.mark.parametrize("content", [
    "{not json",
    '{"value": "an object, not an array"}',
    '[{"value": "missing everything else"}]',
])
def test_json_store_corrupt_file_is_storage_failure(tmp_path, content):
    path = tmp_path / "data.json"
    path.write_text(content)
    store = JsonFileRecordStore(str(path))

    with pytest.raises(StorageFailure):
        store.list()
    # a failed read must not be mistaken for an empty collection
    with pytest.raises(StorageFailure):
        store.insert_if_absent(make_record("new"))
    assert path.read_text() == content


def test_json_store_persists_across_instances(tmp_path):
    path = str(tmp_path / "data.json")
    JsonFileRecordStore(path).insert_if_absent(make_record("kept"))
    assert JsonFileRecordStore(path).get_by_value("kept").value == "kept"


def test_build_store_rejects_unknown_kind():
    with pytest.raises(ValueError):
        build_store("redis")


def test_concurrent_inserts_are_all_kept(any_store):
    values = [f"value-{i}" for i in range(40)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda v: any_store.insert_if_absent(make_record(v)), values))

    assert all(results)
    assert sorted(r.value for r in any_store.list()) == sorted(values)


def test_concurrent_duplicate_inserts_keep_one(any_store):
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: any_store.insert_if_absent(make_record("same")), range(20)))

    assert results.count(True) == 1
    assert [r.value for r in any_store.list()] == ["same"]


def test_concurrent_deletes_are_not_undone_by_inserts(any_store):
    doomed = [f"old-{i}" for i in range(20)]
    fresh = [f"new-{i}" for i in range(20)]
    for value in doomed:
        any_store.insert_if_absent(make_record(value))

    with ThreadPoolExecutor(max_workers=8) as pool:
        deletes = [pool.submit(any_store.delete_by_value, v) for v in doomed]
        inserts = [pool.submit(any_store.insert_if_absent, make_record(v)) for v in fresh]
        assert all(f.result() for f in deletes + inserts)

    assert sorted(r.value for r in any_store.list()) == sorted(fresh)


def test_store_must_implement_whole_contract():
    class ReadOnlyStore(RecordStore):
        def list(self):
            return []

        def get_by_value(self, value):
            return None

    with pytest.raises(TypeError):
        ReadOnlyStore()


def test_json_store_failed_write_leaves_no_temp_file(tmp_path, monkeypatch):
    store = JsonFileRecordStore(str(tmp_path / "data.json"))

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", fail_replace)
    with pytest.raises(StorageFailure):
        store.insert_if_absent(make_record("lost"))
    assert os.listdir(tmp_path) == []


def test_created_at_keeps_microseconds_on_mysql():
    ddl = str(CreateTable(StringAnalysis.__table__).compile(dialect=mysql.dialect()))
    assert "created_at DATETIME(6)" in ddl
