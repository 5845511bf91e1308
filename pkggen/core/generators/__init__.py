from .base import ArtifactGenerator, ArtifactResult, ArtifactStatus
from .delta_gen import DeltaAction, MigrationDelta, build_delta, emit_delta

__all__ = [
    "ArtifactGenerator",
    "ArtifactResult",
    "ArtifactStatus",
    "DeltaAction",
    "MigrationDelta",
    "build_delta",
    "emit_delta",
]
