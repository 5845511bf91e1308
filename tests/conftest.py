from datetime import datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from pkggen.api.main import app
from pkggen.core.context import PackageContext
from pkggen.core.observability.metrics import reset_metrics
from pkggen.core.pipeline import GenerationPipeline
from pkggen.core.settings import PackageType, Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in (
        "PKGGEN_CONFIG_FILE",
        "PKGGEN_WORKSPACE_ROOT",
        "PKGGEN_NAMESPACE",
        "PKGGEN_PACKAGE_TYPE",
        "PKGGEN_API_VERSION",
        "PKGGEN_API_ONLY",
        "PKGGEN_OVERWRITE_POLICY",
        "PKGGEN_TEMPLATES_DIR",
        "PKGGEN_STRICT_PLACEHOLDERS",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_metrics()


class FixedClock:
    """Always reports the same instant; migration timestamps must still be unique."""

    def __init__(self, now: datetime = datetime(2024, 1, 2, 3, 4, 5)):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock():
    return FixedClock()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(workspace_root=tmp_path, namespace="Acme")


@pytest.fixture()
def pipeline(settings, clock) -> GenerationPipeline:
    return GenerationPipeline(settings, clock=clock)


@pytest.fixture()
def domain_ctx(tmp_path: Path) -> PackageContext:
    return PackageContext(
        package_path=tmp_path / "domains" / "Acme" / "Billing",
        namespace="Acme",
        model_name="Invoice",
        package_type=PackageType.DOMAIN,
    )


@pytest.fixture()
def composer_ctx(tmp_path: Path) -> PackageContext:
    return PackageContext(
        package_path=tmp_path / "packages" / "acme" / "billing",
        namespace="Acme\\Billing",
        model_name="Invoice",
        package_type=PackageType.COMPOSER,
    )


@pytest.fixture()
def invoice_records():
    return [
        {"name": "amount", "type": "float", "decimals": 2, "validation": "required"},
        {"name": "paid", "type": "boolean", "default": False},
    ]


@pytest.fixture()
def client(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("PKGGEN_WORKSPACE_ROOT", str(tmp_path))
    monkeypatch.setenv("PKGGEN_NAMESPACE", "Acme")
    return TestClient(app)
