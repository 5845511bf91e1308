import pytest

from pkggen.core.errors import FieldValidationError
from pkggen.core.fields import from_record
from pkggen.core.generators.delta_gen import DeltaAction, build_delta, delta_filename, emit_delta
from pkggen.core.observability.metrics import snapshot_named

TS = "2024_01_02_030405"


def _amount(**kw):
    return from_record({"name": "amount", "type": "float", "decimals": 2, **kw})


def test_filenames():
    assert delta_filename(DeltaAction.ADD, "paid", "invoices", TS) == f"{TS}_add_paid_to_invoices_table.php"
    assert delta_filename(DeltaAction.UPDATE, "paid", "invoices", TS) == f"{TS}_update_paid_in_invoices_table.php"
    assert delta_filename(DeltaAction.REMOVE, "paid", "invoices", TS) == f"{TS}_remove_paid_from_invoices_table.php"


def test_add_is_reversible():
    delta = build_delta(DeltaAction.ADD, "invoices", None, _amount(), TS)
    assert delta.reversible
    assert not delta.requires_review
    assert delta.warnings == ()

    up, down = delta.content.split("public function down()")
    assert "Schema::table('invoices'" in up
    assert "$table->decimal('amount', 10, 2);" in up
    assert "$table->dropColumn('amount');" in down


def test_update_drops_and_readds():
    before = _amount()
    after = _amount(decimals=4, nullable=True)
    delta = build_delta(DeltaAction.UPDATE, "invoices", before, after, TS)

    assert not delta.reversible
    assert len(delta.warnings) == 1
    up, down = delta.content.split("public function down()")
    assert up.index("$table->dropColumn('amount');") < up.index("$table->decimal('amount', 12, 4)->nullable();")
    assert "not safely reversible" in down
    assert "// Previous definition: $table->decimal('amount', 10, 2);" in down


def test_remove_requires_review():
    delta = build_delta(DeltaAction.REMOVE, "invoices", _amount(), None, TS)

    assert not delta.reversible
    assert delta.requires_review
    assert delta.warnings
    up, down = delta.content.split("public function down()")
    assert "$table->dropColumn('amount');" in up
    assert "// $table->decimal('amount', 10, 2);" in down
    assert "\n            $table->decimal" not in down


def test_missing_inputs_rejected():
    with pytest.raises(FieldValidationError):
        build_delta(DeltaAction.ADD, "invoices", None, None, TS)
    with pytest.raises(FieldValidationError):
        build_delta(DeltaAction.UPDATE, "invoices", _amount(), None, TS)
    with pytest.raises(FieldValidationError):
        build_delta(DeltaAction.REMOVE, "invoices", None, _amount(), TS)


def test_emit_writes_after_existing_migrations(domain_ctx, clock, caplog):
    directory = domain_ctx.package_path / "database" / "migrations"
    directory.mkdir(parents=True)
    (directory / f"{TS}_create_invoices_table.php").write_text("<?php\n", encoding="utf-8")

    with caplog.at_level("WARNING", logger="pkggen.migrations"):
        delta = emit_delta(DeltaAction.REMOVE, domain_ctx, _amount(), None, clock=clock)

    assert delta.path == directory / "2024_01_02_030406_remove_amount_from_invoices_table.php"
    assert delta.path.read_text(encoding="utf-8") == delta.content
    assert any("Removing 'amount'" in r.getMessage() for r in caplog.records)
    assert snapshot_named()["deltas_remove"] == 1
    assert delta.to_dict()["requires_review"] is True

    nxt = emit_delta(DeltaAction.ADD, domain_ctx, None, _amount(), clock=clock)
    assert nxt.filename.startswith("2024_01_02_030407_")
    assert sorted(p.name for p in directory.iterdir()) == [
        f"{TS}_create_invoices_table.php",
        "2024_01_02_030406_remove_amount_from_invoices_table.php",
        "2024_01_02_030407_add_amount_to_invoices_table.php",
    ]
