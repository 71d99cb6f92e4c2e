"""Tests for null sanitizing and lenient JSON parsing."""

from datetime import datetime, timezone

import pytest

from po_scanner.utils.json_payloads import loads_lenient
from po_scanner.utils.sanitize import drop_nulls


def test_drop_nulls_removes_none_at_every_depth():
    payload = {
        "notes": None,
        "vendor": {"name": "Vendor Co", "contact": None, "meta": {"fax": None}},
        "items": [None, {"name": "Widget", "sku": None}, None],
    }

    assert drop_nulls(payload) == {
        "vendor": {"name": "Vendor Co", "meta": {}},
        "items": [{"name": "Widget"}],
    }


def test_drop_nulls_keeps_dates_and_falsy_scalars():
    stamp = datetime(2024, 3, 1, tzinfo=timezone.utc)
    payload = {"createdAt": stamp, "tax": 0, "notes": "", "flag": False}

    assert drop_nulls(payload) == payload
    assert drop_nulls(None) is None


def test_loads_lenient_prefers_strict_json():
    assert loads_lenient('  {"total": 10}  ') == {"total": 10}


@pytest.mark.parametrize(
    "text",
    [
        '{"total": 10, "items": [1, 2,],}',
        "{'total': 10, 'items': [1, 2]}",
        '{total: 10, items: [1, 2]}',
    ],
)
def test_loads_lenient_repairs_common_model_mistakes(text):
    assert loads_lenient(text) == {"total": 10, "items": [1, 2]}


@pytest.mark.parametrize("text", ["", "   \n"])
def test_loads_lenient_returns_none_for_blank_input(text):
    assert loads_lenient(text) is None


@pytest.mark.parametrize("text", ["no json here at all", "%%% ??? %%%"])
def test_loads_lenient_returns_none_for_unrepairable_input(text):
    assert loads_lenient(text) is None


def test_loads_lenient_keeps_strict_scalars():
    assert loads_lenient("42") == 42
    assert loads_lenient('"just text"') == "just text"
