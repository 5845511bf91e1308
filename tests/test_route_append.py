from pkggen.core.generators.route_gen import ROUTE_FILE_HEADER, ApiRouteGenerator, append_routes, extract_route_group

RENDERED = (
    "<?php\n"
    "\n"
    "use Illuminate\\Support\\Facades\\Route;\n"
    "\n"
    "// Invoice routes\n"
    "Route::prefix('api/v1')->group(function () {\n"
    "    Route::apiResource('invoices', InvoiceController::class);\n"
    "});\n"
)


def test_extract_strips_header_and_leading_comments():
    group = extract_route_group(RENDERED)
    assert group.startswith("Route::prefix('api/v1')")
    assert "<?php" not in group
    assert "use Illuminate" not in group
    assert "// Invoice routes" not in group
    assert group.endswith("});\n")


def test_append_is_idempotent():
    once = append_routes(ROUTE_FILE_HEADER, RENDERED)
    twice = append_routes(once, RENDERED)
    assert once == twice
    assert once.count("Route::apiResource('invoices'") == 1


def test_append_keeps_other_groups():
    other = RENDERED.replace("invoices", "customers").replace("InvoiceController", "CustomerController")
    content = append_routes(append_routes(ROUTE_FILE_HEADER, RENDERED), other)
    assert "apiResource('invoices'" in content
    assert "apiResource('customers'" in content
    assert content.startswith(ROUTE_FILE_HEADER)


def test_route_file_shared_between_models(domain_ctx):
    gen = ApiRouteGenerator()
    first = gen.generate([], domain_ctx)
    second = gen.generate([], domain_ctx.with_model("Customer"))
    again = gen.generate([], domain_ctx)

    assert first.status.value == "written"
    assert second.status.value == "written"
    assert again.status.value == "unchanged"

    content = first.path.read_text(encoding="utf-8")
    assert content.startswith(ROUTE_FILE_HEADER)
    assert content.count("Route::prefix('api/v1')") == 2
    assert "Route::apiResource('invoices', \\Acme\\Billing\\Http\\Controllers\\InvoiceController::class);" in content
    assert "Route::apiResource('customers', \\Acme\\Billing\\Http\\Controllers\\CustomerController::class);" in content
