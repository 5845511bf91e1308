from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from pkggen.core.settings import PackageType


class CreatePackageRequest(BaseModel):
    name: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    fields: List[Dict[str, Any]] = Field(default_factory=list)
    namespace: Optional[str] = None
    package_type: Optional[PackageType] = None
    api_only: Optional[bool] = None
    api_version: Optional[str] = None
    package_path: Optional[str] = None


class AddModelRequest(BaseModel):
    package_path: str
    model: str = Field(..., min_length=1)
    fields: List[Dict[str, Any]] = Field(default_factory=list)


class ModelRef(BaseModel):
    package_path: str
    model: str = Field(..., min_length=1)


class AddFieldRequest(ModelRef):
    field: Dict[str, Any]


class UpdateFieldRequest(ModelRef):
    changes: Dict[str, Any]
