from __future__ import annotations

import pytest

from withdrawal_reports.services.datasets import DatasetStore, UnknownPanelError


def test_put_replaces_panel_rows() -> None:
    store = DatasetStore(["1", "2"])
    store.put("1", [{"Merchant Name": "Acme"}])
    count = store.put("1", [{"Merchant Name": "Globex"}, {"Merchant Name": "Initech"}])

    assert count == 2
    assert store.merchants("1") == ["Globex", "Initech"]
    assert store.get("2") == []


def test_merchants_are_unique_in_first_seen_order() -> None:
    store = DatasetStore(["1"])
    store.put(
        "1",
        [
            {"Merchant Name": "Globex"},
            {"Merchant Name": "Acme"},
            {"Merchant Name": "Globex"},
            {"Merchant Name": ""},
            {"Withdrawal Amount": 10},
            {"Merchant Name": 42},
        ],
    )
    assert store.merchants("1") == ["Globex", "Acme", "42"]


def test_stored_rows_are_isolated_from_callers() -> None:
    store = DatasetStore(["1"])
    rows = [{"Merchant Name": "Acme"}]
    store.put("1", rows)
    rows[0]["Merchant Name"] = "Changed"
    store.get("1").append({"Merchant Name": "Extra"})

    assert store.get("1") == [{"Merchant Name": "Acme"}]


def test_unknown_panel_is_rejected() -> None:
    store = DatasetStore(["1", "2"])
    with pytest.raises(UnknownPanelError):
        store.put("3", [])
    with pytest.raises(UnknownPanelError):
        store.get("panel-x")


def test_clear_resets_one_or_all_panels() -> None:
    store = DatasetStore(["1", "2"])
    store.put("1", [{"Merchant Name": "Acme"}])
    store.put("2", [{"Merchant Name": "Globex"}])

    store.clear("1")
    assert store.get("1") == []
    assert store.merchants("2") == ["Globex"]

    store.clear()
    assert store.get("2") == []


def test_store_requires_panels() -> None:
    with pytest.raises(ValueError):
        DatasetStore([])


def test_whole_number_merchant_floats_are_normalised() -> None:
    store = DatasetStore(["1"])
    store.put("1", [{"Merchant Name": 42.0}, {"Merchant Name": 4.5}, {"Merchant Name": float("nan")}])

    assert store.merchants("1") == ["42", "4.5"]
