"""
Unit tests for the record store backends and backend selection.
"""

import json
import os
import threading
from collections import defaultdict
from unittest.mock import MagicMock, patch

import pytest

from delicacies.api.dependencies import Settings
from delicacies.exceptions import NotFoundError, ValidationError
from delicacies.storage.record_store import (
    JsonFileRecordStore,
    MongoRecordStore,
    SqlRecordStore,
    create_record_store,
    next_record_id,
)
from delicacies.storage.seed import seed_demo_data
from delicacies.storage.tables import PRODUCTS, TABLE_COLLECTIONS, resolve_table


class TestIdAssignment:
    """Tests for integer id generation."""

    def test_empty_collection_starts_at_one(self):
        assert next_record_id([]) == 1

    def test_max_plus_one_skips_holes(self):
        assert next_record_id([{"id": 1}, {"id": 5}, {"id": 3}]) == 6

    def test_non_integer_ids_count_as_zero(self):
        assert next_record_id([{"id": "abc"}, {"name": "no id"}, {"id": True}]) == 1


class TestJsonFileRecordStore:
    """Tests for the flat-file backend."""

    def test_missing_collection_reads_empty(self, json_store):
        assert json_store.read_all("nothing") == []
        assert not json_store.exists("nothing")

    def test_inserts_are_monotonic(self, json_store):
        ids = [json_store.insert("orders", {"n": n})["id"] for n in range(5)]

        assert ids == [1, 2, 3, 4, 5]
        assert [r["n"] for r in json_store.read_all("orders")] == [0, 1, 2, 3, 4]

    def test_ids_never_reused_after_gap(self, json_store):
        json_store.write_all("orders", [{"id": 1}, {"id": 4}])

        assert json_store.insert("orders", {})["id"] == 5

    def test_client_id_is_dropped(self, json_store):
        created = json_store.insert("orders", {"id": 99, "total": 10})

        assert created == {"id": 1, "total": 10}

    def test_round_trip_preserves_unicode(self, json_store):
        json_store.write_all("categories", [{"id": 1, "name": "ठेकुआ"}])

        assert json_store.read_all("categories") == [{"id": 1, "name": "ठेकुआ"}]

    def test_corrupt_file_reads_empty(self, json_store):
        (json_store.data_dir / "products.json").write_text("{not json", encoding="utf-8")

        assert json_store.read_all("products") == []

    def test_non_array_file_reads_empty(self, json_store):
        (json_store.data_dir / "products.json").write_text(json.dumps({"id": 1}), encoding="utf-8")

        assert json_store.read_all("products") == []

    def test_find_and_find_one(self, json_store):
        json_store.write_all("sellers", [
            {"id": 1, "userId": 7},
            {"id": 2, "userId": 8},
            {"id": 3, "userId": 7},
        ])

        assert json_store.find_one("sellers", {"userId": 7})["id"] == 1
        assert [s["id"] for s in json_store.find("sellers", {"userId": 7})] == [1, 3]
        assert json_store.find_one("sellers", lambda s: s["id"] > 2)["id"] == 3
        assert json_store.find_one("sellers", {"userId": 9}) is None

    def test_upsert_inserts_then_merges(self, json_store):
        first = json_store.upsert("seller_banking", {"userId": 1}, {"ifsc": "A"}, on_insert={"createdAt": "t0"})
        second = json_store.upsert("seller_banking", {"userId": 1}, {"ifsc": "B"}, on_insert={"createdAt": "t1"})

        assert first == {"userId": 1, "ifsc": "A", "createdAt": "t0"}
        assert second == {"userId": 1, "ifsc": "B", "createdAt": "t0"}
        assert json_store.read_all("seller_banking") == [second]

    def test_concurrent_inserts_keep_every_record(self, json_store):
        barrier = threading.Barrier(8)

        def worker(n):
            barrier.wait()
            for i in range(5):
                json_store.insert("orders", {"worker": n, "i": i})

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        records = json_store.read_all("orders")
        assert len(records) == 40
        assert {r["id"] for r in records} == set(range(1, 41))

    def test_readers_never_see_a_partial_write(self, json_store):
        json_store.write_all("orders", [{"id": 1}])
        real_replace = os.replace
        seen_mid_write = []

        def replace(src, dst):
            seen_mid_write.append(json_store.read_all("orders"))
            real_replace(src, dst)

        with patch("delicacies.storage.record_store.os.replace", side_effect=replace):
            json_store.write_all("orders", [{"id": 1}, {"id": 2}])

        assert seen_mid_write == [[{"id": 1}]]
        assert json_store.read_all("orders") == [{"id": 1}, {"id": 2}]
        assert [p.name for p in json_store.data_dir.iterdir()] == ["orders.json"]


class TestSqlRecordStore:
    """Tests for the SQLAlchemy backend on a SQLite file."""

    @pytest.fixture
    def sql_store(self, tmp_path):
        store = SqlRecordStore(f"sqlite:///{tmp_path / 'app.db'}")
        yield store
        store.close()

    def test_insert_and_read(self, sql_store):
        assert not sql_store.exists("products")

        first = sql_store.insert("products", {"name": "Khaja"})
        second = sql_store.insert("products", {"id": 50, "name": "Tilkut"})

        assert (first["id"], second["id"]) == (1, 2)
        assert sql_store.exists("products")
        assert [p["name"] for p in sql_store.read_all("products")] == ["Khaja", "Tilkut"]

    def test_write_all_replaces(self, sql_store):
        sql_store.insert("products", {"name": "Khaja"})
        sql_store.write_all("products", [{"id": 10, "name": "Anarsa"}])

        assert sql_store.read_all("products") == [{"id": 10, "name": "Anarsa"}]
        assert sql_store.insert("products", {})["id"] == 11

    def test_empty_write_marks_collection(self, sql_store):
        sql_store.write_all("orders", [])

        assert sql_store.exists("orders")
        assert sql_store.read_all("orders") == []


class TestMongoRecordStore:
    """Tests for the MongoDB backend against a mocked database."""

    @pytest.fixture
    def database(self):
        return MagicMock()

    def test_insert_returns_string_id(self, database):
        database["orders"].insert_one.return_value = MagicMock(inserted_id="65f0c0ffee0000000000beef")
        store = MongoRecordStore(database)

        created = store.insert("orders", {"id": 3, "total": 700})

        assert created == {"id": "65f0c0ffee0000000000beef", "total": 700}
        database["orders"].insert_one.assert_called_once_with({"total": 700})

    def test_read_all_maps_object_ids(self, database):
        database["sellers"].find.return_value = [{"_id": "abc", "userId": "u1"}]
        store = MongoRecordStore(database)

        assert store.read_all("sellers") == [{"id": "abc", "userId": "u1"}]

    def test_write_all_keeps_record_ids(self, database):
        store = MongoRecordStore(database)

        store.write_all("sellers", [
            {"id": 1, "business_name": "Mithaiwala Sweets"},
            {"id": "65f0c0ffee0000000000beef", "business_name": "Litti Ghar"},
            {"business_name": "No Id"},
        ])

        docs = database["sellers"].insert_many.call_args[0][0]
        assert docs[0] == {"_id": 1, "business_name": "Mithaiwala Sweets"}
        assert str(docs[1]["_id"]) == "65f0c0ffee0000000000beef"
        assert docs[2] == {"business_name": "No Id"}

    def test_seeded_references_resolve(self, database):
        collections = defaultdict(MagicMock)
        database.__getitem__.side_effect = collections.__getitem__
        database.list_collection_names.return_value = []
        store = MongoRecordStore(database)
        seed_demo_data(store)
        seller_docs = database["sellers"].insert_many.call_args[0][0]
        product_docs = database["products"].insert_many.call_args[0][0]
        database["sellers"].find_one.return_value = seller_docs[0]

        seller = store.find_one("sellers", {"id": product_docs[0]["seller_id"]})

        database["sellers"].find_one.assert_called_with({"_id": 1})
        assert seller["id"] == 1
        assert seller["business_name"] == "Mithaiwala Sweets"

    def test_read_failure_is_soft(self, database):
        database["sellers"].find.side_effect = RuntimeError("connection reset")
        store = MongoRecordStore(database)

        assert store.read_all("sellers") == []

    def test_schema_validation(self, database):
        store = MongoRecordStore(database)

        with pytest.raises(ValidationError) as exc_info:
            store.insert("products", {"seller_id": "s1"})

        assert "name" in exc_info.value.message
        assert "price" in exc_info.value.message
        database["products"].insert_one.assert_not_called()

    def test_exists_uses_collection_names(self, database):
        database.list_collection_names.return_value = ["users"]
        store = MongoRecordStore(database)

        assert store.exists("users")
        assert not store.exists("orders")


class TestBackendSelection:
    """Tests for create_record_store fallbacks."""

    def test_defaults_to_json(self, tmp_path):
        store = create_record_store(Settings(data_dir=str(tmp_path)))

        assert store.backend_name == "json"

    def test_database_url_selects_sql(self, tmp_path):
        store = create_record_store(Settings(
            data_dir=str(tmp_path),
            database_url=f"sqlite:///{tmp_path / 'app.db'}",
        ))

        assert store.backend_name == "sql"
        store.close()

    def test_unreachable_mongo_falls_back(self, tmp_path):
        from pymongo.errors import ServerSelectionTimeoutError

        with patch("pymongo.MongoClient") as client_cls:
            client_cls.return_value.admin.command.side_effect = ServerSelectionTimeoutError("down")
            store = create_record_store(Settings(
                data_dir=str(tmp_path),
                mongodb_uri="mongodb://localhost:1",
                mongodb_timeout_ms=10,
            ))

        assert store.backend_name == "json"

    def test_reachable_mongo_wins(self, tmp_path):
        with patch("pymongo.MongoClient") as client_cls:
            store = create_record_store(Settings(
                data_dir=str(tmp_path),
                mongodb_uri="mongodb://localhost:27017",
                database_url=f"sqlite:///{tmp_path / 'app.db'}",
            ))

        assert store.backend_name == "mongo"
        client_cls.return_value.admin.command.assert_called_once_with("ping")


class TestTablesAndSeed:
    """Tests for the table registry and demo seeding."""

    def test_resolve_known_tables(self):
        assert resolve_table(39102) == PRODUCTS
        assert resolve_table("39102") == PRODUCTS
        assert len(TABLE_COLLECTIONS) == 9

    @pytest.mark.parametrize("table_id", [39104, "abc", "", None])
    def test_resolve_unknown(self, table_id):
        with pytest.raises(NotFoundError):
            resolve_table(table_id)

    def test_seed_only_missing_collections(self, json_store):
        json_store.write_all(PRODUCTS, [])

        created = seed_demo_data(json_store)

        assert PRODUCTS not in created
        assert json_store.read_all(PRODUCTS) == []
        assert json_store.read_all("sellers")[0]["business_name"] == "Mithaiwala Sweets"
        assert json_store.exists("users")

        assert seed_demo_data(json_store) == []
