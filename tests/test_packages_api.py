from pkggen.api.observability.metrics import normalize_path

FIELDS = [
    {"name": "amount", "type": "float", "decimals": 2, "validation": "required"},
    {"name": "paid", "type": "boolean", "default": False},
]


def _create(client, **extra):
    body = {"name": "Billing", "model": "Invoice", "fields": FIELDS, **extra}
    r = client.post("/api/v1/packages", json=body)
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    live = client.get("/api/v1/health/live").json()
    assert live["status"] == "alive"
    assert live["templates"] is True


def test_create_package_and_metadata(client, tmp_path):
    body = _create(client)
    assert body["ok"] is True
    assert body["model"] == "Invoice"
    assert len(body["artifacts"]) == 13
    assert body["package_path"] == str(tmp_path.resolve() / "domains" / "Acme" / "Billing")

    r = client.get("/api/v1/packages/metadata", params={"package_path": "domains/Acme/Billing"})
    assert r.status_code == 200
    meta = r.json()
    assert meta["models"] == ["Invoice"]
    assert meta["namespace"] == "Acme\\Billing"


def test_default_rules_applied_to_fields_without_validation(client):
    pkg = _create(client)["package_path"]
    r = client.post(
        "/api/v1/packages/fields",
        json={"package_path": pkg, "model": "Invoice", "field": {"name": "title", "type": "string", "maxLength": 80}},
    )
    assert r.status_code == 201, r.text

    listed = client.get("/api/v1/packages/fields", params={"package_path": pkg, "model": "Invoice"}).json()
    title = [f for f in listed["fields"] if f["name"] == "title"][0]
    assert title["validation"] == "required|string|max:80"


def test_field_lifecycle(client):
    pkg = _create(client)["package_path"]

    added = client.post(
        "/api/v1/packages/fields",
        json={"package_path": pkg, "model": "Invoice", "field": {"name": "note", "type": "text"}},
    ).json()
    assert added["delta"]["action"] == "add"
    assert added["delta"]["reversible"] is True

    updated = client.put(
        "/api/v1/packages/fields/note",
        json={"package_path": pkg, "model": "Invoice", "changes": {"nullable": True}},
    )
    assert updated.status_code == 200
    assert updated.json()["delta"]["action"] == "update"
    assert updated.json()["warnings"]

    removed = client.delete("/api/v1/packages/fields/note", params={"package_path": pkg, "model": "Invoice"})
    assert removed.status_code == 200
    assert removed.json()["delta"]["requires_review"] is True

    names = [f["name"] for f in client.get(
        "/api/v1/packages/fields", params={"package_path": pkg, "model": "Invoice"}
    ).json()["fields"]]
    assert names == ["amount", "paid"]


def test_add_model_and_regenerate(client):
    pkg = _create(client)["package_path"]
    r = client.post("/api/v1/packages/models", json={"package_path": pkg, "model": "Customer"})
    assert r.status_code == 201
    assert r.json()["model"] == "Customer"

    regen = client.post("/api/v1/packages/regenerate", json={"package_path": pkg, "model": "Invoice"})
    assert regen.status_code == 200
    assert regen.json()["ok"] is True


def test_error_mapping(client):
    pkg = _create(client)["package_path"]

    dup = client.post(
        "/api/v1/packages/fields",
        json={"package_path": pkg, "model": "Invoice", "field": {"name": "paid", "type": "boolean"}},
    )
    assert dup.status_code == 409
    assert dup.json()["error"] == "DuplicateFieldError"
    assert "paid" in dup.json()["detail"]

    again = client.post("/api/v1/packages", json={"name": "Billing", "model": "Invoice"})
    assert again.status_code == 409

    bad_type = client.post(
        "/api/v1/packages/fields",
        json={"package_path": pkg, "model": "Invoice", "field": {"name": "when", "type": "datetime"}},
    )
    assert bad_type.status_code == 400

    bad_name = client.post(
        "/api/v1/packages/fields",
        json={"package_path": pkg, "model": "Invoice", "field": {"name": "Bad Name", "type": "string"}},
    )
    assert bad_name.status_code == 400

    missing_field = client.delete("/api/v1/packages/fields/ghost", params={"package_path": pkg, "model": "Invoice"})
    assert missing_field.status_code == 404

    missing_pkg = client.get("/api/v1/packages/metadata", params={"package_path": "domains/Acme/Nope"})
    assert missing_pkg.status_code == 404

    outside = client.get("/api/v1/packages/metadata", params={"package_path": "../../etc"})
    assert outside.status_code == 400

    schema = client.post("/api/v1/packages", json={"name": "Billing"})
    assert schema.status_code == 422


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-Id": "abc-123"})
    assert r.headers["X-Request-Id"] == "abc-123"
    assert client.get("/health").headers.get("X-Request-Id")

    err = client.get(
        "/api/v1/packages/metadata",
        params={"package_path": "domains/Acme/Nope"},
        headers={"X-Request-Id": "req-9"},
    )
    assert err.json()["request_id"] == "req-9"


def test_metrics_endpoints(client):
    _create(client)
    client.get("/health")

    text = client.get("/metrics").text
    assert "pkggen_http_requests_total" in text
    assert "pkggen_artifacts_total" in text

    named = client.get("/metrics/snapshot").json()["named"]
    assert named["packages_created"] == 1
    assert named["artifacts_written"] == 13
    assert named["requests_total"] >= 2


def test_normalize_path():
    assert normalize_path("/api/v1/packages/fields/amount") == "/api/v1/packages/fields/:name"
    assert normalize_path("/items/42") == "/items/:id"
    assert normalize_path("") == "/"
