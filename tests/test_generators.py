import json
from dataclasses import replace

import pytest

from pkggen.core.analyzer import Relationship
from pkggen.core.errors import ArtifactExistsError
from pkggen.core.fields import from_records
from pkggen.core.generators.base import ArtifactStatus
from pkggen.core.generators.controller_gen import ControllerGenerator
from pkggen.core.generators.migration_gen import MigrationGenerator, next_timestamp
from pkggen.core.generators.model_gen import ModelGenerator
from pkggen.core.generators.package_gen import ManifestGenerator, ServiceProviderGenerator
from pkggen.core.generators.request_gen import RequestGenerator
from pkggen.core.generators.resource_gen import ResourceGenerator
from pkggen.core.generators.service_gen import ServiceGenerator
from pkggen.core.generators.view_gen import DetailViewGenerator, FormViewGenerator, ListViewGenerator
from pkggen.core.observability.metrics import snapshot_named
from pkggen.core.settings import OverwritePolicy


@pytest.fixture()
def fields(invoice_records):
    return from_records(invoice_records)


def test_model_artifact(fields, domain_ctx):
    result = ModelGenerator().generate(fields, domain_ctx)

    assert result.path == domain_ctx.package_path / "Models" / "Invoice.php"
    assert result.status == ArtifactStatus.WRITTEN
    content = result.path.read_text(encoding="utf-8")
    assert "namespace Acme\\Billing\\Models;" in content
    assert "class Invoice extends Model" in content
    assert "protected $table = 'invoices';" in content
    assert "        'amount',\n        'paid'," in content
    assert "'amount' => 'float'," in content
    assert "'paid' => 'boolean'," in content
    assert content.rstrip().endswith("}")


def test_regenerating_unchanged_inputs_is_byte_identical(fields, domain_ctx):
    gen = ModelGenerator()
    first = gen.generate(fields, domain_ctx)
    before = first.path.read_bytes()

    second = gen.generate(fields, domain_ctx)
    assert second.status == ArtifactStatus.UNCHANGED
    assert second.ok
    assert first.path.read_bytes() == before
    assert snapshot_named()["artifacts_unchanged"] == 1


def test_overwrite_policies(fields, domain_ctx):
    path = ModelGenerator().generate(fields, domain_ctx).path
    path.write_text("// edited by hand\n", encoding="utf-8")

    skipped = ModelGenerator(policy=OverwritePolicy.SKIP).generate(fields, domain_ctx)
    assert skipped.status == ArtifactStatus.SKIPPED
    assert not skipped.ok
    assert path.read_text(encoding="utf-8") == "// edited by hand\n"

    with pytest.raises(ArtifactExistsError) as exc:
        ModelGenerator(policy=OverwritePolicy.FAIL).generate(fields, domain_ctx)
    assert str(path) in str(exc.value)

    written = ModelGenerator(policy=OverwritePolicy.OVERWRITE).generate(fields, domain_ctx)
    assert written.status == ArtifactStatus.WRITTEN
    # identical content is never a conflict
    again = ModelGenerator(policy=OverwritePolicy.FAIL).generate(fields, domain_ctx)
    assert again.status == ArtifactStatus.UNCHANGED


def test_composer_layout_and_namespaces(fields, composer_ctx):
    src = composer_ctx.package_path / "src"
    model = ModelGenerator().generate(fields, composer_ctx)
    controller = ControllerGenerator().generate(fields, composer_ctx)

    assert model.path == src / "Models" / "Invoice.php"
    assert "namespace Acme\\Billing\\Models;" in model.path.read_text(encoding="utf-8")

    assert controller.path == src / "Http" / "Controllers" / "InvoiceController.php"
    content = controller.path.read_text(encoding="utf-8")
    assert "namespace Acme\\Billing\\Http\\Controllers;" in content
    assert "use Acme\\Billing\\Services\\InvoiceService;" in content


def test_class_artifact_paths(fields, domain_ctx):
    root = domain_ctx.package_path
    assert ServiceGenerator().generate(fields, domain_ctx).path == root / "Services" / "InvoiceService.php"
    assert RequestGenerator().generate(fields, domain_ctx).path == root / "Http" / "Requests" / "InvoiceRequest.php"
    assert ResourceGenerator().generate(fields, domain_ctx).path == root / "Http" / "Resources" / "InvoiceResource.php"


def test_request_rules_and_resource_attributes(fields, domain_ctx):
    rules = RequestGenerator().generate(fields, domain_ctx).path.read_text(encoding="utf-8")
    assert "'amount' => 'required|numeric|decimal:0,2'," in rules
    assert "'paid' => 'boolean'," in rules

    resource = ResourceGenerator().generate(fields, domain_ctx).path.read_text(encoding="utf-8")
    lines = [l.strip() for l in resource.splitlines() if "=> $this->" in l]
    assert lines == [
        "'id' => $this->id,",
        "'amount' => $this->amount,",
        "'paid' => $this->paid,",
        "'created_at' => $this->created_at,",
        "'updated_at' => $this->updated_at,",
    ]


def test_empty_field_list_still_renders(domain_ctx):
    content = ModelGenerator().generate([], domain_ctx).path.read_text(encoding="utf-8")
    assert "// No fillable attributes defined" in content
    assert "// No attribute casts defined" in content


def test_model_keeps_relationships(fields, domain_ctx):
    rels = [
        Relationship(name="customer", type="belongsTo", related_model="Customer", foreign_key="customer_id"),
        Relationship(name="items", type="hasMany", related_model="InvoiceItem"),
    ]
    content = ModelGenerator(relationships=rels).generate(fields, domain_ctx).path.read_text(encoding="utf-8")
    assert "public function customer()" in content
    assert "return $this->belongsTo(Customer::class, 'customer_id');" in content
    assert "return $this->hasMany(InvoiceItem::class);" in content


def test_create_migration_filename_and_reuse(fields, domain_ctx, clock):
    gen = MigrationGenerator(clock=clock)
    first = gen.generate(fields, domain_ctx)

    assert first.path.name == "2024_01_02_030405_create_invoices_table.php"
    assert first.path.parent == domain_ctx.package_path / "database" / "migrations"
    content = first.path.read_text(encoding="utf-8")
    assert "Schema::create('invoices'" in content
    assert "            $table->decimal('amount', 10, 2);" in content
    assert "            $table->boolean('paid')->default(false);" in content
    assert "Schema::dropIfExists('invoices');" in content

    second = gen.generate(fields, domain_ctx)
    assert second.path == first.path
    assert second.status == ArtifactStatus.UNCHANGED
    assert len(list(first.path.parent.glob("*.php"))) == 1


def test_migration_timestamps_are_monotonic(tmp_path, clock):
    assert next_timestamp(tmp_path / "missing", clock) == "2024_01_02_030405"

    (tmp_path / "2024_01_02_030405_create_invoices_table.php").write_text("", encoding="utf-8")
    (tmp_path / "2024_01_02_030406_add_paid_to_invoices_table.php").write_text("", encoding="utf-8")
    (tmp_path / "notes.php").write_text("", encoding="utf-8")
    assert next_timestamp(tmp_path, clock) == "2024_01_02_030407"


def test_views_skipped_for_api_only(fields, domain_ctx):
    api_ctx = replace(domain_ctx, api_only=True)
    for gen in (FormViewGenerator(), ListViewGenerator(), DetailViewGenerator()):
        assert gen.applies(domain_ctx)
        assert not gen.applies(api_ctx)


def test_view_paths(fields, domain_ctx):
    ctx = domain_ctx.with_model("InvoiceItem")
    base = ctx.package_path / "resources" / "js" / "components" / "invoice-item"
    assert FormViewGenerator().generate(fields, ctx).path == base / "invoice-item-form.vue"
    assert ListViewGenerator().generate(fields, ctx).path == base / "invoice-item-list.vue"
    assert DetailViewGenerator().generate(fields, ctx).path == base / "invoice-item-view.vue"


def test_form_view_content(fields, domain_ctx):
    content = FormViewGenerator().generate(fields, domain_ctx).path.read_text(encoding="utf-8")
    assert 'v-model="form.amount"' in content
    assert 'type="checkbox"' in content
    assert "amount: null," in content
    assert "paid: false," in content
    assert "/api/v1/invoices" in content
    assert "{{ modelName }}" not in content


def test_list_view_shows_first_four_fields(domain_ctx):
    many = from_records({"name": f"f{i}", "type": "string"} for i in range(1, 7))
    content = ListViewGenerator().generate(many, domain_ctx).path.read_text(encoding="utf-8")
    assert "{{ item.id }}" in content
    for name in ("f1", "f2", "f3", "f4"):
        assert f"{{{{ item.{name} }}}}" in content
    assert "item.f5" not in content
    assert "item.f6" not in content


def test_list_view_names_for_multi_word_model(fields, domain_ctx):
    ctx = domain_ctx.with_model("InvoiceItem")
    assert ctx.model_variable == "invoiceItem"
    content = ListViewGenerator().generate(fields, ctx).path.read_text(encoding="utf-8")
    assert "Invoice Item List</h1>" in content
    assert "Create Invoice Item" in content
    assert "invoiceItems: []," in content


def test_manifest_and_service_provider(domain_ctx, composer_ctx):
    manifest = ManifestGenerator().generate([], composer_ctx)
    data = json.loads(manifest.path.read_text(encoding="utf-8"))
    assert manifest.path == composer_ctx.package_path / "composer.json"
    assert data["name"] == "acme/billing"
    assert data["autoload"]["psr-4"] == {"Acme\\Billing\\": "src/"}
    assert data["extra"]["laravel"]["providers"] == ["Acme\\Billing\\BillingServiceProvider"]

    provider = ServiceProviderGenerator().generate([], domain_ctx)
    assert provider.path == domain_ctx.package_path / "BillingServiceProvider.php"
    text = provider.path.read_text(encoding="utf-8")
    assert "namespace Acme\\Billing;" in text
    assert "class BillingServiceProvider extends ServiceProvider" in text
    assert "routes/web.php" in text

    api_text = ServiceProviderGenerator().render([], replace(domain_ctx, api_only=True))
    assert "routes/api.php" in api_text
    assert "routes/web.php" not in api_text
