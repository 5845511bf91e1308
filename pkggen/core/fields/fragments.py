"""
Code fragments derived from FieldSpecs.

Every artifact generator builds its placeholder values from the functions in
this module; nothing else renders per-field text. Per-variant behavior is
dispatched in one place per behavior on the closed set of field classes.

Block builders emit one line (or one block) per field in ledger order and a
comment placeholder when there are no fields, so a generated file never ends
up with an empty or syntactically broken section.
"""
from __future__ import annotations

import html
from typing import Any, Iterable, List, Optional, Sequence

from .models import BooleanField, FieldSpec, FileField, FloatField, IntegerField, StringField, TextField
from .rules import format_number

TABLE_FIELD_LIMIT = 4

_INPUT_CLASS = (
    "shadow appearance-none border rounded w-full py-2 px-3 text-gray-700 "
    "leading-tight focus:outline-none focus:shadow-outline"
)
_LABEL_CLASS = "block text-gray-700 text-sm font-bold mb-2"
_TH_CLASS = "px-6 py-3 text-left text-xs font-medium text-gray-500 uppercase tracking-wider"
_TH_ACTIONS_CLASS = "px-6 py-3 text-right text-xs font-medium text-gray-500 uppercase tracking-wider"
_TD_ID_CLASS = "px-6 py-4 whitespace-nowrap text-sm font-medium text-gray-900"
_TD_CLASS = "px-6 py-4 whitespace-nowrap text-sm text-gray-500"


# ----------------------------------------------------------------------
# Literals
# ----------------------------------------------------------------------
def php_string(value: Any) -> str:
    s = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{s}'"


def js_string(value: Any) -> str:
    s = str(value).replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{s}'"


def php_default_literal(field: FieldSpec) -> Optional[str]:
    """Default as PHP source text, or None when the column has no default."""
    value = field.default
    if value is None:
        return None
    if isinstance(field, BooleanField):
        return "true" if value else "false"
    if isinstance(field, (IntegerField, FloatField)):
        return format_number(value)
    return php_string(value)


def js_default_literal(field: FieldSpec) -> str:
    value = field.default
    if value is None:
        return "null"
    if isinstance(field, BooleanField):
        return "true" if value else "false"
    if isinstance(field, (IntegerField, FloatField)):
        return format_number(value)
    return js_string(value)


# ----------------------------------------------------------------------
# Per-field behaviors
# ----------------------------------------------------------------------
def column_expression(field: FieldSpec) -> str:
    """Schema builder call for the column, without modifiers."""
    n = php_string(field.name)
    if isinstance(field, StringField):
        return f"$table->string({n}, {field.max_length})"
    if isinstance(field, IntegerField):
        return f"$table->integer({n})"
    if isinstance(field, TextField):
        return f"$table->text({n})"
    if isinstance(field, BooleanField):
        return f"$table->boolean({n})"
    if isinstance(field, FloatField):
        return f"$table->decimal({n}, {field.precision}, {field.decimals})"
    if isinstance(field, FileField):
        # stored as a path/reference to the uploaded file
        return f"$table->string({n}, 255)"
    raise TypeError(f"Unsupported field variant: {type(field).__name__}")


def migration_column_definition(field: FieldSpec) -> str:
    column = column_expression(field)
    if field.nullable:
        column += "->nullable()"
    default = php_default_literal(field)
    if default is not None:
        column += f"->default({default})"
    return column + ";"


def model_cast_hint(field: FieldSpec) -> Optional[str]:
    if isinstance(field, BooleanField):
        return "boolean"
    if isinstance(field, IntegerField):
        return "integer"
    if isinstance(field, FloatField):
        return "float"
    if isinstance(field, (StringField, TextField, FileField)):
        return None
    raise TypeError(f"Unsupported field variant: {type(field).__name__}")


def _step(decimals: int) -> str:
    if decimals <= 0:
        return "1"
    return "0." + "0" * (decimals - 1) + "1"


def _file_size(size_kb: int) -> str:
    if size_kb >= 1024:
        return f"{format_number(round(size_kb / 1024, 2))} MB"
    return f"{size_kb} KB"


def _error_slot(name: str) -> str:
    return f'<div v-if="errors.{name}" class="text-red-500 text-xs italic mt-1">{{{{ errors.{name}[0] }}}}</div>'


def _label(field: FieldSpec) -> List[str]:
    text = html.escape(field.label)
    if field.is_required:
        text += ' <span class="text-red-500">*</span>'
    return [
        f'<label for="{field.name}" class="{_LABEL_CLASS}">',
        f"    {text}",
        "</label>",
    ]


def _control(tag: str, attrs: Sequence[str], closing: str) -> List[str]:
    return [f"<{tag}"] + [f"    {a}" for a in attrs if a] + [closing]


def form_input_fragment(field: FieldSpec) -> str:
    n = field.name
    required = "required" if field.is_required else ""
    common = [f'id="{n}"', f'v-model="form.{n}"']

    if isinstance(field, BooleanField):
        lines = [
            '<div class="flex items-center">',
            "    <input",
            f'        id="{n}"',
            f'        v-model="form.{n}"',
            '        type="checkbox"',
            f'        name="{n}"',
            '        class="h-4 w-4 text-blue-600 focus:ring-blue-500 border-gray-300 rounded"',
            "    >",
            f'    <label for="{n}" class="ml-2 block text-gray-700 text-sm font-medium">',
            f"        {html.escape(field.label)}",
            "    </label>",
            "</div>",
        ]
    elif isinstance(field, StringField):
        lines = _label(field) + _control(
            "input",
            common + ['type="text"', f'name="{n}"', f'class="{_INPUT_CLASS}"', f'maxlength="{field.max_length}"', required],
            ">",
        )
    elif isinstance(field, IntegerField):
        lines = _label(field) + _control(
            "input",
            common
            + [
                'type="number"',
                f'name="{n}"',
                f'class="{_INPUT_CLASS}"',
                f'min="{field.min}"' if field.min is not None else "",
                f'max="{field.max}"' if field.max is not None else "",
                'step="1"',
                required,
            ],
            ">",
        )
    elif isinstance(field, FloatField):
        lines = _label(field) + _control(
            "input",
            common
            + [
                'type="number"',
                f'name="{n}"',
                f'class="{_INPUT_CLASS}"',
                f'min="{format_number(field.min)}"' if field.min is not None else "",
                f'max="{format_number(field.max)}"' if field.max is not None else "",
                f'step="{_step(field.decimals)}"',
                required,
            ],
            ">",
        )
    elif isinstance(field, TextField):
        tag = "rich-editor" if field.use_rich_editor else "textarea"
        attrs = common + [f'name="{n}"']
        if not field.use_rich_editor:
            attrs.append('rows="4"')
        attrs += [f'class="{_INPUT_CLASS}"', required]
        lines = _label(field) + _control(tag, attrs, f"></{tag}>")
    elif isinstance(field, FileField):
        accept = ",".join("." + ext for ext in field.allowed_extensions)
        types = ", ".join(field.allowed_extensions).upper()
        lines = _label(field) + ['<div class="mt-1 flex items-center">']
        lines += [
            "    " + line
            for line in _control(
                "input",
                [
                    f'id="{n}"',
                    'type="file"',
                    f'name="{n}"',
                    '@change="handleFileUpload"',
                    'class="block w-full text-sm text-gray-500 file:mr-4 file:py-2 file:px-4 '
                    'file:rounded file:border-0 file:text-sm file:font-semibold file:bg-blue-50 '
                    'file:text-blue-700 hover:file:bg-blue-100"',
                    f'accept="{accept}"' if accept else "",
                    required,
                ],
                "/>",
            )
        ]
        lines += [
            "</div>",
            '<p class="mt-1 text-sm text-gray-500">',
            f"    Max file size: {_file_size(field.max_size_kb)}."
            + (f" Allowed types: {types}" if types else ""),
            "</p>",
        ]
    else:
        raise TypeError(f"Unsupported field variant: {type(field).__name__}")

    body = ['<div class="mb-4">'] + ["    " + line for line in lines] + ["    " + _error_slot(n), "</div>"]
    return "\n".join(body)


def validation_rules_string(field: FieldSpec) -> str:
    return field.validation_rules_string()


# ----------------------------------------------------------------------
# Collection blocks
# ----------------------------------------------------------------------
def _indent(text: str, prefix: str) -> str:
    return "\n".join((prefix + line) if line else line for line in text.split("\n"))


def fillable_block(fields: Sequence[FieldSpec], indent: str = "        ") -> str:
    if not fields:
        return f"{indent}// No fillable attributes defined"
    return ",\n".join(f"{indent}{php_string(f.name)}" for f in fields) + ","


def casts_block(fields: Sequence[FieldSpec], indent: str = "        ") -> str:
    casts = []
    for f in fields:
        cast = model_cast_hint(f)
        if cast is not None:
            casts.append(f"{indent}{php_string(f.name)} => {php_string(cast)},")
    if not casts:
        return f"{indent}// No attribute casts defined"
    return "\n".join(casts)


def schema_block(fields: Sequence[FieldSpec], indent: str = "            ") -> str:
    if not fields:
        return f"{indent}// No columns defined"
    return "\n".join(indent + migration_column_definition(f) for f in fields)


def rules_block(fields: Sequence[FieldSpec], indent: str = "            ") -> str:
    if not fields:
        return f"{indent}// No validation rules defined"
    return "\n".join(
        f"{indent}{php_string(f.name)} => {php_string(validation_rules_string(f))}," for f in fields
    )


def resource_attributes_block(fields: Sequence[FieldSpec], indent: str = "            ") -> str:
    lines = [f"{indent}'id' => $this->id,"]
    if fields:
        lines += [f"{indent}{php_string(f.name)} => $this->{f.name}," for f in fields]
    else:
        lines.append(f"{indent}// No fields defined")
    lines += [f"{indent}'created_at' => $this->created_at,", f"{indent}'updated_at' => $this->updated_at,"]
    return "\n".join(lines)


def form_fields_block(fields: Sequence[FieldSpec], indent: str = "        ") -> str:
    if not fields:
        return f"{indent}<!-- No fields defined -->"
    return "\n\n".join(_indent(form_input_fragment(f), indent) for f in fields)


def form_data_block(fields: Sequence[FieldSpec], indent: str = "        ") -> str:
    if not fields:
        return f"{indent}// No fields defined"
    return "\n".join(f"{indent}{f.name}: {js_default_literal(f)}," for f in fields)


def table_headers_block(fields: Sequence[FieldSpec], indent: str = "            ") -> str:
    lines = [f'{indent}<th class="{_TH_CLASS}">ID</th>']
    for f in list(fields)[:TABLE_FIELD_LIMIT]:
        lines.append(f'{indent}<th class="{_TH_CLASS}">{html.escape(f.label)}</th>')
    lines.append(f'{indent}<th class="{_TH_ACTIONS_CLASS}">Actions</th>')
    return "\n".join(lines)


def table_rows_block(fields: Sequence[FieldSpec], indent: str = "            ") -> str:
    lines = [f'{indent}<td class="{_TD_ID_CLASS}">{{{{ item.id }}}}</td>']
    for f in list(fields)[:TABLE_FIELD_LIMIT]:
        lines.append(f'{indent}<td class="{_TD_CLASS}">{{{{ item.{f.name} }}}}</td>')
    return "\n".join(lines)


def detail_fields_block(fields: Sequence[FieldSpec], indent: str = "        ") -> str:
    if not fields:
        return f"{indent}<!-- No fields defined -->"
    blocks = []
    for f in fields:
        blocks.append(
            "\n".join(
                [
                    f'{indent}<div class="mb-4">',
                    f'{indent}    <h3 class="text-sm font-medium text-gray-500">{html.escape(f.label)}</h3>',
                    f'{indent}    <p class="mt-1 text-sm text-gray-900">{{{{ item.{f.name} }}}}</p>',
                    f"{indent}</div>",
                ]
            )
        )
    return "\n\n".join(blocks)


def relationship_method(rel: Any, indent: str = "    ") -> str:
    args: List[str] = []
    if rel.related_model:
        args.append(f"{rel.related_model}::class")
    if rel.related_model or rel.type == "morphTo":
        if rel.foreign_key:
            args.append(php_string(rel.foreign_key))
            if rel.local_key:
                args.append(php_string(rel.local_key))
    lines = [
        "/**",
        f" * Get the {rel.name} relationship.",
        " */",
        f"public function {rel.name}()",
        "{",
        f"    return $this->{rel.type}({', '.join(args)});",
        "}",
    ]
    return "\n".join(indent + line for line in lines)


def relationships_block(relationships: Iterable[Any]) -> str:
    methods = [relationship_method(r) for r in relationships]
    if not methods:
        return ""
    return "\n" + "\n\n".join(methods) + "\n"
