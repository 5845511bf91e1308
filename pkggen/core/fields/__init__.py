from .factory import from_record, from_records, merge_record, to_record
from .models import (
    FIELD_TYPES,
    BooleanField,
    FieldSpec,
    FileField,
    FloatField,
    IntegerField,
    StringField,
    TextField,
)

__all__ = [
    "FIELD_TYPES",
    "FieldSpec",
    "StringField",
    "IntegerField",
    "TextField",
    "BooleanField",
    "FloatField",
    "FileField",
    "from_record",
    "from_records",
    "to_record",
    "merge_record",
]
