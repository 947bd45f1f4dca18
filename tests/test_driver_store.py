"""Tests for driver persistence keyed by order id."""

import json

from rental_booking.booking.driver_store import InMemoryDriverInfoStore, JsonFileDriverInfoStore
from tests.conftest import make_driver


class TestInMemoryStore:
    def test_round_trip(self):
        store = InMemoryDriverInfoStore()
        drivers = [make_driver(), make_driver(first_name="Ben", license_photo=("5001",))]
        store.save("ORD-1", drivers)
        assert store.load("ORD-1") == drivers

    def test_missing_order(self):
        assert InMemoryDriverInfoStore().load("ORD-404") is None

    def test_reset(self):
        store = InMemoryDriverInfoStore()
        store.save("ORD-1", [make_driver()])
        store.reset()
        assert store.load("ORD-1") is None


class TestJsonFileStore:
    def test_writes_one_file_per_order(self, tmp_path):
        store = JsonFileDriverInfoStore(directory=str(tmp_path), prefix="driverInfo_")
        store.save("ORD-ABC123", [make_driver()])
        path = tmp_path / "driverInfo_ORD-ABC123.json"
        assert path.exists()
        assert json.loads(path.read_text())[0]["first_name"] == "Anna"
        assert not list(tmp_path.glob("*.tmp"))

    def test_round_trip(self, tmp_path):
        store = JsonFileDriverInfoStore(directory=str(tmp_path))
        store.save("ORD-1", [make_driver(country="CH")])
        assert store.load("ORD-1")[0].country == "CH"

    def test_unsafe_order_id_is_sanitized(self, tmp_path):
        store = JsonFileDriverInfoStore(directory=str(tmp_path), prefix="d_")
        store.save("../escape", [make_driver()])
        assert (tmp_path / "d_.._escape.json").exists()
        assert store.load("../escape") is not None

    def test_corrupt_file_treated_as_absent(self, tmp_path):
        store = JsonFileDriverInfoStore(directory=str(tmp_path), prefix="d_")
        (tmp_path / "d_ORD-1.json").write_text("{not json")
        assert store.load("ORD-1") is None

    def test_invalid_record_treated_as_absent(self, tmp_path):
        store = JsonFileDriverInfoStore(directory=str(tmp_path), prefix="d_")
        (tmp_path / "d_ORD-1.json").write_text(json.dumps([{"first_name": 12}]))
        assert store.load("ORD-1") is None

    def test_single_object_entry_accepted(self, tmp_path):
        store = JsonFileDriverInfoStore(directory=str(tmp_path), prefix="d_")
        (tmp_path / "d_ORD-1.json").write_text(json.dumps({"first_name": "Solo"}))
        assert [d.first_name for d in store.load("ORD-1")] == ["Solo"]

    def test_missing_file(self, tmp_path):
        assert JsonFileDriverInfoStore(directory=str(tmp_path / "nope")).load("ORD-1") is None
