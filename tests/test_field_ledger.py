import json

import pytest

from pkggen.core.errors import LedgerCorruptError
from pkggen.core.fields import from_record
from pkggen.core.ledger import FieldLedger


def _f(name, type_="string", **kw):
    return from_record({"name": name, "type": type_, **kw})


def test_missing_ledger_loads_empty(tmp_path):
    ledger = FieldLedger(tmp_path, "Invoice")
    assert not ledger.exists()
    assert ledger.load() == []


def test_ledger_location_and_document_shape(tmp_path):
    ledger = FieldLedger(tmp_path, "InvoiceItem")
    assert ledger.save([_f("title")])

    assert ledger.path == tmp_path / ".definitions" / "invoiceitem.json"
    data = json.loads(ledger.path.read_text(encoding="utf-8"))
    assert data["model"] == "InvoiceItem"
    assert data["fields"][0]["name"] == "title"
    assert data["fields"][0]["validation"] == "max:255"


def test_round_trip_preserves_order_and_parameters(tmp_path):
    fields = [
        _f("zeta", "integer", min=1),
        _f("amount", "float", decimals=3),
        _f("doc", "file", maxSize=512, allowedTypes=["png"]),
        _f("alpha", "text", useRichEditor=True),
    ]
    ledger = FieldLedger(tmp_path, "Invoice")
    assert ledger.save(fields)
    assert FieldLedger(tmp_path, "Invoice").load() == fields


def test_add_field_appends_and_refuses_duplicates(tmp_path):
    ledger = FieldLedger(tmp_path, "Invoice")
    assert ledger.add_field(_f("title"))
    assert ledger.add_field(_f("paid", "boolean"))

    before = ledger.path.read_bytes()
    assert ledger.add_field(_f("title", max_length=10)) is False
    assert ledger.path.read_bytes() == before
    assert [f.name for f in ledger.load()] == ["title", "paid"]


def test_update_and_remove(tmp_path):
    ledger = FieldLedger(tmp_path, "Invoice")
    ledger.save([_f("a"), _f("b"), _f("c")])

    assert ledger.update_field("b", _f("b", "integer"))
    assert ledger.get_field("b").type == "integer"
    assert [f.name for f in ledger.load()] == ["a", "b", "c"]

    assert ledger.remove_field("a")
    assert [f.name for f in ledger.load()] == ["b", "c"]

    assert ledger.update_field("missing", _f("missing")) is False
    assert ledger.remove_field("missing") is False


def test_corrupt_ledger_is_reported(tmp_path):
    ledger = FieldLedger(tmp_path, "Invoice")
    ledger.path.parent.mkdir(parents=True)
    ledger.path.write_text("{oops", encoding="utf-8")
    with pytest.raises(LedgerCorruptError):
        ledger.load()

    ledger.path.write_text('{"fields": [{"name": "x", "type": "datetime"}]}', encoding="utf-8")
    with pytest.raises(LedgerCorruptError):
        ledger.load()

    ledger.path.write_text('["not", "an", "object"]', encoding="utf-8")
    with pytest.raises(LedgerCorruptError):
        ledger.load()
