"""
FieldSpec: the typed description of one model attribute.

The six variants form a closed union discriminated by ``type``. Behavior that
differs per variant (column definition, cast, form input) is not implemented
as methods here; see ``pkggen.core.fields.fragments``.
"""
from __future__ import annotations

import re
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from pkggen.core import naming

from .rules import canonical_rules, join_rules, split_rules

FIELD_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")

DEFAULT_FILE_EXTENSIONS = ("pdf", "doc", "docx", "xls", "xlsx")


class BaseField(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_default=True)

    # Record keys for the variant parameters, in ledger order.
    param_keys: ClassVar[Dict[str, str]] = {}

    name: str
    nullable: bool = False
    default: Optional[Any] = None
    description: Optional[str] = None
    validation_rules: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("validation_rules", "validation", "rules"),
    )

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not FIELD_NAME_PATTERN.fullmatch(v or ""):
            raise ValueError(
                f"invalid field name {v!r}: must start with a lowercase letter and "
                "contain only lowercase letters, numbers and underscores"
            )
        return v

    @field_validator("validation_rules", mode="before")
    @classmethod
    def _split(cls, v: Any) -> List[str]:
        return split_rules(v)

    @field_validator("description")
    @classmethod
    def _blank_description(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _inject_rules(self):
        self.validation_rules = canonical_rules(self.validation_rules, self)
        return self

    # ------------------------------------------------------------------
    # Common accessors
    # ------------------------------------------------------------------
    @property
    def label(self) -> str:
        if self.description:
            return self.description
        return naming.title(self.name)

    @property
    def is_required(self) -> bool:
        return "required" in self.validation_rules

    def validation_rules_string(self) -> str:
        return join_rules(self.validation_rules)

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "nullable": self.nullable,
            "default": self.default,
            "description": self.description,
            "validation": self.validation_rules_string(),
        }
        for attr, key in self.param_keys.items():
            value = getattr(self, attr)
            record[key] = list(value) if isinstance(value, tuple) else value
        return record


class StringField(BaseField):
    param_keys: ClassVar[Dict[str, str]] = {"max_length": "maxLength"}

    type: Literal["string"] = "string"
    default: Optional[str] = None
    max_length: int = Field(255, ge=1, validation_alias=AliasChoices("max_length", "maxLength"))


class IntegerField(BaseField):
    param_keys: ClassVar[Dict[str, str]] = {"min": "min", "max": "max"}

    type: Literal["integer"] = "integer"
    default: Optional[int] = None
    min: Optional[int] = None
    max: Optional[int] = None

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"field '{self.name}': min {self.min} is greater than max {self.max}")
        return self


class TextField(BaseField):
    param_keys: ClassVar[Dict[str, str]] = {"use_rich_editor": "useRichEditor"}

    type: Literal["text"] = "text"
    default: Optional[str] = None
    use_rich_editor: bool = Field(
        False, validation_alias=AliasChoices("use_rich_editor", "useRichEditor")
    )


class BooleanField(BaseField):
    type: Literal["boolean"] = "boolean"
    default: Optional[bool] = False


class FloatField(BaseField):
    param_keys: ClassVar[Dict[str, str]] = {"decimals": "decimals", "min": "min", "max": "max"}

    type: Literal["float"] = "float"
    default: Optional[float] = None
    decimals: int = Field(2, ge=0, le=30)
    min: Optional[float] = None
    max: Optional[float] = None

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"field '{self.name}': min {self.min} is greater than max {self.max}")
        return self

    @property
    def precision(self) -> int:
        # 8 integer digits before the decimal point
        return 8 + self.decimals


class FileField(BaseField):
    param_keys: ClassVar[Dict[str, str]] = {
        "max_size_kb": "maxSize",
        "allowed_extensions": "allowedTypes",
    }

    type: Literal["file"] = "file"
    default: Optional[str] = None
    max_size_kb: int = Field(
        10240,
        ge=1,
        validation_alias=AliasChoices("max_size_kb", "maxSize", "maxSizeKB"),
    )
    allowed_extensions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_FILE_EXTENSIONS),
        validation_alias=AliasChoices("allowed_extensions", "allowedTypes", "allowedExtensions"),
    )

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def _split_extensions(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            return [str(e).strip().lstrip(".").lower() for e in v if str(e).strip()]
        return v


FieldSpec = Annotated[
    Union[StringField, IntegerField, TextField, BooleanField, FloatField, FileField],
    Field(discriminator="type"),
]

FIELD_TYPES: Dict[str, type] = {
    "string": StringField,
    "integer": IntegerField,
    "text": TextField,
    "boolean": BooleanField,
    "float": FloatField,
    "file": FileField,
}
