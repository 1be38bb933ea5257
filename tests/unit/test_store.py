"""Tests for the in-memory alert store."""

import threading
from datetime import UTC

import pytest

from price_sentinel.alerts.store import AlertStore
from price_sentinel.core.exceptions import AlertValidationError
from price_sentinel.core.models import Condition


@pytest.fixture
def store() -> AlertStore:
    return AlertStore()


class TestAdd:
    def test_returns_normalized_alert(self, store):
        alert = store.add(" nasdaq:aapl ", "above", "150.5")
        assert alert.symbol == "NASDAQ:AAPL"
        assert alert.condition == Condition.ABOVE
        assert alert.threshold == 150.5
        assert alert.created_at.tzinfo is UTC
        assert alert.id

    def test_condition_case_insensitive(self, store):
        assert store.add("AAPL", "BELOW", 10).condition == Condition.BELOW

    def test_ids_are_unique(self, store):
        ids = {store.add("AAPL", "above", 100).id for _ in range(200)}
        assert len(ids) == 200

    @pytest.mark.parametrize("symbol", [None, "", "   ", 42])
    def test_missing_symbol_rejected(self, store, symbol):
        with pytest.raises(AlertValidationError, match="symbol is required") as exc_info:
            store.add(symbol, "above", 100)
        assert exc_info.value.context["field"] == "symbol"
        assert len(store) == 0

    @pytest.mark.parametrize("condition", [None, ""])
    def test_missing_condition_rejected(self, store, condition):
        with pytest.raises(AlertValidationError, match="condition is required"):
            store.add("AAPL", condition, 100)

    @pytest.mark.parametrize("condition", ["sideways", "gt", ">=", "abovee"])
    def test_unknown_condition_never_stored(self, store, condition):
        with pytest.raises(AlertValidationError, match="'above' or 'below'"):
            store.add("AAPL", condition, 100)
        assert store.list() == []

    @pytest.mark.parametrize("threshold", [None, "", True])
    def test_missing_threshold_rejected(self, store, threshold):
        with pytest.raises(AlertValidationError, match="price is required"):
            store.add("AAPL", "above", threshold)

    @pytest.mark.parametrize("threshold", ["abc", [1]])
    def test_unparsable_threshold_rejected(self, store, threshold):
        with pytest.raises(AlertValidationError, match="price must be a number"):
            store.add("AAPL", "above", threshold)

    @pytest.mark.parametrize("threshold", [0, "-3", "inf", "nan"])
    def test_non_positive_threshold_rejected(self, store, threshold):
        with pytest.raises(AlertValidationError, match="positive number"):
            store.add("AAPL", "above", threshold)


class TestList:
    def test_empty(self, store):
        assert store.list() == []

    def test_newest_first(self, store):
        first = store.add("AAPL", "above", 1)
        second = store.add("MSFT", "above", 2)
        third = store.add("TSLA", "below", 3)
        assert [a.id for a in store.list()] == [third.id, second.id, first.id]

    def test_returns_snapshot(self, store):
        store.add("AAPL", "above", 1)
        snapshot = store.list()
        store.add("MSFT", "above", 2)
        assert len(snapshot) == 1
        assert len(store.list()) == 2


class TestRemove:
    def test_remove_existing(self, store):
        alert = store.add("AAPL", "above", 1)
        assert store.remove(alert.id) is True
        assert store.get(alert.id) is None
        assert len(store) == 0

    def test_remove_unknown_returns_false(self, store):
        store.add("AAPL", "above", 1)
        assert store.remove("does-not-exist") is False
        assert len(store) == 1

    def test_remove_twice(self, store):
        alert = store.add("AAPL", "above", 1)
        assert store.remove(alert.id) is True
        assert store.remove(alert.id) is False

    def test_get(self, store):
        alert = store.add("AAPL", "above", 1)
        assert store.get(alert.id) == alert


class TestConcurrency:
    def test_concurrent_removal_has_single_winner(self, store):
        alert = store.add("AAPL", "above", 1)
        results: list[bool] = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(store.remove(alert.id))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert results.count(False) == 7

    def test_concurrent_adds(self, store):
        def worker():
            for _ in range(50):
                store.add("AAPL", "above", 1)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 200
