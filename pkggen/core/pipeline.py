"""
Generation pipeline: the operations a caller runs against a package.

Every mutation follows the same order:

  1. recover the package context (Analyzer) and validate the request;
     nothing is written when validation fails
  2. mutate the Field Ledger; a failed ledger write aborts the operation
  3. regenerate the field-dependent artifacts from the ledger; a failing
     artifact is recorded and the remaining ones are still attempted
  4. emit the migration delta for the mutation
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field as dc_field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type, Union

from pkggen.core.analyzer import PackageAnalyzer
from pkggen.core.context import PackageContext, ensure_within_workspace, resolve_package_path
from pkggen.core.errors import (
    DuplicateFieldError,
    FieldNotFoundError,
    LedgerWriteError,
    ModelExistsError,
    ModelNotFoundError,
    PackageGeneratorError,
    PackageNotFoundError,
)
from pkggen.core.fields.factory import find_field, from_record, merge_record
from pkggen.core.fields.models import FieldSpec
from pkggen.core.generators.base import ArtifactGenerator, ArtifactResult
from pkggen.core.generators.controller_gen import ControllerGenerator
from pkggen.core.generators.delta_gen import DeltaAction, MigrationDelta, emit_delta
from pkggen.core.generators.migration_gen import Clock, MigrationGenerator
from pkggen.core.generators.model_gen import ModelGenerator
from pkggen.core.generators.package_gen import ManifestGenerator, ServiceProviderGenerator
from pkggen.core.generators.request_gen import RequestGenerator
from pkggen.core.generators.resource_gen import ResourceGenerator
from pkggen.core.generators.route_gen import ApiRouteGenerator, WebRouteGenerator
from pkggen.core.generators.service_gen import ServiceGenerator
from pkggen.core.generators.view_gen import DetailViewGenerator, FormViewGenerator, ListViewGenerator
from pkggen.core.ledger import FieldLedger
from pkggen.core.naming import studly
from pkggen.core.settings import PackageType, Settings, load_settings
from pkggen.core.templating import get_renderer

log = logging.getLogger("pkggen.pipeline")

FieldInput = Union[FieldSpec, Mapping[str, Any]]

MODEL_GENERATORS: Sequence[Type[ArtifactGenerator]] = (
    ModelGenerator,
    MigrationGenerator,
    ServiceGenerator,
    ControllerGenerator,
    RequestGenerator,
    ResourceGenerator,
    ApiRouteGenerator,
    WebRouteGenerator,
    FormViewGenerator,
    ListViewGenerator,
    DetailViewGenerator,
)

FIELD_DEPENDENT_GENERATORS: Sequence[Type[ArtifactGenerator]] = (
    ModelGenerator,
    RequestGenerator,
    ResourceGenerator,
    FormViewGenerator,
    ListViewGenerator,
    DetailViewGenerator,
)

PACKAGE_GENERATORS: Sequence[Type[ArtifactGenerator]] = (
    ManifestGenerator,
    ServiceProviderGenerator,
)


@dataclass
class GenerationReport:
    operation: str
    package_path: Path
    model: Optional[str] = None
    results: List[ArtifactResult] = dc_field(default_factory=list)
    errors: List[Dict[str, str]] = dc_field(default_factory=list)
    delta: Optional[MigrationDelta] = None

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def warnings(self) -> List[str]:
        return list(self.delta.warnings) if self.delta else []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "package_path": str(self.package_path),
            "model": self.model,
            "ok": self.ok,
            "artifacts": [r.to_dict() for r in self.results],
            "errors": list(self.errors),
            "delta": self.delta.to_dict() if self.delta else None,
            "warnings": self.warnings,
        }


def _coerce_field(value: FieldInput) -> FieldSpec:
    if isinstance(value, Mapping):
        return from_record(value)
    return value


def _coerce_fields(values: Iterable[FieldInput], model: str) -> List[FieldSpec]:
    fields: List[FieldSpec] = []
    for value in values:
        f = _coerce_field(value)
        if find_field(fields, f.name) is not None:
            raise DuplicateFieldError(f.name, model)
        fields.append(f)
    return fields


class GenerationPipeline:
    def __init__(self, settings: Optional[Settings] = None, *, clock: Optional[Clock] = None):
        self.settings = settings or load_settings()
        self.clock = clock
        self.renderer = get_renderer(self.settings.templates_dir, self.settings.strict_placeholders)

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------
    def package_path(self, path: Union[str, Path]) -> Path:
        return ensure_within_workspace(self.settings, path)

    def existing_context(self, package_path: Union[str, Path], model: str) -> PackageContext:
        """Context of an existing package, recovered from its artifacts."""
        path = self.package_path(package_path)
        analyzer = PackageAnalyzer(path)
        if not analyzer.exists():
            raise PackageNotFoundError(path)
        return PackageContext(
            package_path=path,
            namespace=analyzer.namespace() or self.settings.namespace,
            model_name=studly(model),
            package_type=analyzer.package_type,
            api_only=analyzer.is_api_only() if analyzer.models() else self.settings.api_only,
            api_version=analyzer.api_version() or self.settings.api_version,
        )

    def _model_context(self, package_path: Union[str, Path], model: str) -> PackageContext:
        context = self.existing_context(package_path, model)
        ledger = FieldLedger(context.package_path, context.model_name)
        if not ledger.exists() and not PackageAnalyzer(context.package_path, context.package_type).model_exists(context.model_name):
            raise ModelNotFoundError(context.model_name, context.package_path)
        return context

    # ------------------------------------------------------------------
    # Artifact runs
    # ------------------------------------------------------------------
    def _generator(self, cls: Type[ArtifactGenerator], context: PackageContext) -> ArtifactGenerator:
        policy = self.settings.overwrite_policy
        if cls is ModelGenerator:
            relationships = PackageAnalyzer(context.package_path, context.package_type).model_relationships(
                context.model_name
            )
            return ModelGenerator(self.renderer, policy, relationships=relationships)
        if cls is MigrationGenerator:
            return MigrationGenerator(self.renderer, policy, clock=self.clock)
        return cls(self.renderer, policy)

    def _run(
        self,
        generators: Sequence[Type[ArtifactGenerator]],
        fields: Sequence[FieldSpec],
        context: PackageContext,
        report: GenerationReport,
    ) -> None:
        for cls in generators:
            gen = self._generator(cls, context)
            if not gen.applies(context):
                continue
            try:
                report.results.append(gen.generate(fields, context))
            except (PackageGeneratorError, OSError) as exc:
                log.error("Failed to generate %s for %s: %s", gen.kind, context.model_name, exc)
                report.errors.append({"kind": gen.kind, "error": str(exc)})

    def _emit_delta(
        self,
        action: DeltaAction,
        context: PackageContext,
        before: Optional[FieldSpec],
        after: Optional[FieldSpec],
        report: GenerationReport,
    ) -> None:
        try:
            report.delta = emit_delta(action, context, before, after, clock=self.clock, renderer=self.renderer)
        except (PackageGeneratorError, OSError) as exc:
            log.error("Failed to write %s migration for %s: %s", action.value, context.model_name, exc)
            report.errors.append({"kind": "migration_delta", "error": str(exc)})

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def create_package(
        self,
        name: str,
        model: str,
        fields: Iterable[FieldInput] = (),
        *,
        namespace: Optional[str] = None,
        package_type: Optional[PackageType] = None,
        api_only: Optional[bool] = None,
        api_version: Optional[str] = None,
        package_path: Optional[Union[str, Path]] = None,
    ) -> GenerationReport:
        """Create a package with its first model and every artifact."""
        ptype = PackageType(package_type or self.settings.package_type)
        ns = namespace or self.settings.namespace
        if package_path is not None:
            path = self.package_path(package_path)
        else:
            path = resolve_package_path(self.settings, name, namespace=ns, package_type=ptype)

        context = PackageContext(
            package_path=path,
            namespace=ns,
            model_name=studly(model),
            package_type=ptype,
            api_only=self.settings.api_only if api_only is None else bool(api_only),
            api_version=api_version or self.settings.api_version,
        )
        specs = _coerce_fields(fields, context.model_name)

        ledger = FieldLedger(path, context.model_name)
        if ledger.exists():
            raise ModelExistsError(context.model_name, path)

        report = GenerationReport("create_package", path, context.model_name)
        ledger.require_saved(ledger.save(specs))
        self._run(PACKAGE_GENERATORS, specs, context, report)
        self._run(MODEL_GENERATORS, specs, context, report)
        log.info("Created package %s with model %s (%d fields)", path, context.model_name, len(specs))
        return report

    def add_model(self, package_path: Union[str, Path], model: str, fields: Iterable[FieldInput] = ()) -> GenerationReport:
        context = self.existing_context(package_path, model)
        specs = _coerce_fields(fields, context.model_name)

        ledger = FieldLedger(context.package_path, context.model_name)
        analyzer = PackageAnalyzer(context.package_path, context.package_type)
        if ledger.exists() or analyzer.model_exists(context.model_name):
            raise ModelExistsError(context.model_name, context.package_path)

        report = GenerationReport("add_model", context.package_path, context.model_name)
        ledger.require_saved(ledger.save(specs))
        self._run(MODEL_GENERATORS, specs, context, report)
        return report

    def add_field(self, package_path: Union[str, Path], model: str, field: FieldInput) -> GenerationReport:
        context = self._model_context(package_path, model)
        spec = _coerce_field(field)
        ledger = FieldLedger(context.package_path, context.model_name)
        if ledger.get_field(spec.name) is not None:
            raise DuplicateFieldError(spec.name, context.model_name)

        if not ledger.add_field(spec):
            if ledger.get_field(spec.name) is not None:
                raise DuplicateFieldError(spec.name, context.model_name)
            raise LedgerWriteError(ledger.path, context.model_name)

        report = GenerationReport("add_field", context.package_path, context.model_name)
        self._run(FIELD_DEPENDENT_GENERATORS, ledger.load(), context, report)
        self._emit_delta(DeltaAction.ADD, context, None, spec, report)
        return report

    def update_field(
        self,
        package_path: Union[str, Path],
        model: str,
        name: str,
        changes: Mapping[str, Any],
    ) -> GenerationReport:
        context = self._model_context(package_path, model)
        ledger = FieldLedger(context.package_path, context.model_name)
        prior = ledger.get_field(name)
        if prior is None:
            raise FieldNotFoundError(name, context.model_name)

        updated = merge_record(prior, changes)
        if updated.name != name and ledger.get_field(updated.name) is not None:
            raise DuplicateFieldError(updated.name, context.model_name)

        if not ledger.update_field(name, updated):
            if ledger.get_field(name) is None:
                raise FieldNotFoundError(name, context.model_name)
            raise LedgerWriteError(ledger.path, context.model_name)

        report = GenerationReport("update_field", context.package_path, context.model_name)
        self._run(FIELD_DEPENDENT_GENERATORS, ledger.load(), context, report)
        if updated.to_record() == prior.to_record():
            log.info("Field %s.%s unchanged; no migration emitted", context.model_name, name)
        else:
            self._emit_delta(DeltaAction.UPDATE, context, prior, updated, report)
        return report

    def remove_field(self, package_path: Union[str, Path], model: str, name: str) -> GenerationReport:
        context = self._model_context(package_path, model)
        ledger = FieldLedger(context.package_path, context.model_name)
        prior = ledger.get_field(name)
        if prior is None:
            raise FieldNotFoundError(name, context.model_name)

        if not ledger.remove_field(name):
            if ledger.get_field(name) is None:
                raise FieldNotFoundError(name, context.model_name)
            raise LedgerWriteError(ledger.path, context.model_name)

        report = GenerationReport("remove_field", context.package_path, context.model_name)
        self._run(FIELD_DEPENDENT_GENERATORS, ledger.load(), context, report)
        self._emit_delta(DeltaAction.REMOVE, context, prior, None, report)
        return report

    def regenerate(self, package_path: Union[str, Path], model: str) -> GenerationReport:
        """Re-render every field-dependent artifact of ``model`` from its ledger."""
        context = self._model_context(package_path, model)
        fields = FieldLedger(context.package_path, context.model_name).load()
        report = GenerationReport("regenerate", context.package_path, context.model_name)
        self._run(FIELD_DEPENDENT_GENERATORS, fields, context, report)
        return report

    def list_fields(self, package_path: Union[str, Path], model: str) -> List[FieldSpec]:
        context = self._model_context(package_path, model)
        return FieldLedger(context.package_path, context.model_name).load()
