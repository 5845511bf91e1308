from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Union


class PackageGeneratorError(Exception):
    """Base class for every failure raised by the generator core."""


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------
class FieldValidationError(PackageGeneratorError, ValueError):
    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UnknownFieldTypeError(FieldValidationError):
    def __init__(self, field_type: str, *, field: Optional[str] = None):
        super().__init__(f"Unsupported field type: {field_type!r}", field=field)
        self.field_type = field_type


class DuplicateFieldError(FieldValidationError):
    def __init__(self, field: str, model: str):
        super().__init__(f"Field '{field}' already exists on model '{model}'", field=field)
        self.model = model


# ------------------------------------------------------------------
# Not found
# ------------------------------------------------------------------
class FieldNotFoundError(PackageGeneratorError, LookupError):
    def __init__(self, field: str, model: str):
        super().__init__(f"Field '{field}' not found on model '{model}'")
        self.field = field
        self.model = model


class PackageNotFoundError(PackageGeneratorError, LookupError):
    def __init__(self, path: Union[str, Path]):
        super().__init__(f"Package not found: {path}")
        self.path = str(path)


class ModelNotFoundError(PackageGeneratorError, LookupError):
    def __init__(self, model: str, path: Union[str, Path]):
        super().__init__(f"Model '{model}' not found in package {path}")
        self.model = model
        self.path = str(path)


# ------------------------------------------------------------------
# I/O
# ------------------------------------------------------------------
class ArtifactWriteError(PackageGeneratorError, OSError):
    def __init__(self, path: Union[str, Path], reason: str = ""):
        msg = f"Failed to write artifact: {path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
        self.path = str(path)


class ModelExistsError(PackageGeneratorError, FileExistsError):
    def __init__(self, model: str, path: Union[str, Path]):
        super().__init__(f"Model '{model}' already exists in package {path}")
        self.model = model
        self.path = str(path)


class ArtifactExistsError(PackageGeneratorError, FileExistsError):
    def __init__(self, path: Union[str, Path]):
        super().__init__(f"Artifact already exists and overwrite policy is 'fail': {path}")
        self.path = str(path)


class LedgerWriteError(PackageGeneratorError, OSError):
    def __init__(self, path: Union[str, Path], model: str):
        super().__init__(f"Failed to save field ledger for model '{model}': {path}")
        self.path = str(path)
        self.model = model


class LedgerCorruptError(PackageGeneratorError, ValueError):
    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(f"Field ledger is unreadable: {path} ({reason})")
        self.path = str(path)


# ------------------------------------------------------------------
# Templating
# ------------------------------------------------------------------
class UnresolvedPlaceholderError(PackageGeneratorError, KeyError):
    def __init__(self, template: str, names: Iterable[str]):
        self.template = template
        self.names = sorted(names)
        super().__init__(
            f"Template '{template}' has unresolved placeholders: {', '.join(self.names)}"
        )

    def __str__(self) -> str:
        # KeyError wraps its message in quotes otherwise
        return str(self.args[0])


# ------------------------------------------------------------------
# Workspace
# ------------------------------------------------------------------
class WorkspacePathError(PackageGeneratorError, ValueError):
    def __init__(self, path: Union[str, Path], root: Union[str, Path]):
        super().__init__(f"Package path {path} is outside the workspace root {root}")
        self.path = str(path)
