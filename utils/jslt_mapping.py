"""
Generates JSLT from a header mapping (HeaderProcessor "Rename Headers Mapping")
and resolves "Record Group By" from output names back to source CSV header names.

Mapping values are one of:
    const{literal}                       -> "literal"
    exp{hdr{field} + 'a' + 'b'}          -> .field + "ab"
    field                                -> .field  (or get-key(., "field") when not an identifier)
"""

import json
import re
from collections import OrderedDict
from typing import Optional

CONST_PATTERN = re.compile(r"const\{([^}]*)\}")
HDR_IN_EXP_PATTERN = re.compile(r"hdr\{([^}]+)\}")

# Wrapped values that are not plain source header names
NON_FIELD_PREFIXES = ("exp{", "const{", "hdr{", "sum{", "avg{")


class TransformScriptError(ValueError):
    """Raised when a header mapping cannot be compiled."""


class JsltMappingUtil:
    """Header mapping to JSLT compilation."""

    @staticmethod
    def from_header_mapping(
        header_mapping_json: str,
        date_column_output_key: Optional[str] = None,
        existing_date_format: Optional[str] = None,
        new_date_format: Optional[str] = None,
        timezone_id: Optional[str] = None
    ) -> str:
        """
        Generate a JSLT object expression from header mapping JSON.

        Args:
            header_mapping_json: JSON object, key = output key, value = input key or exp{}/const{}
            date_column_output_key: Output key of the date column, or None to skip date formatting
            existing_date_format: e.g. "yyyy-MM-dd HH:mm:ss"
            new_date_format: e.g. "yyyy-MM-dd'T'HH:mm:ssXXX"
            timezone_id: Optional zone passed to parse-time/format-time (e.g. "America/Chicago")

        Returns:
            JSLT transform string, one entry per mapping key in insertion order

        Raises:
            TransformScriptError: If the mapping is not a JSON object
        """
        mapping = _load_mapping(header_mapping_json)

        lines = ["{"]
        size = len(mapping)
        for i, (output_key, value) in enumerate(mapping.items()):
            expr = JsltMappingUtil.value_to_jslt(
                value, output_key, date_column_output_key,
                existing_date_format, new_date_format, timezone_id
            )
            separator = "," if i < size - 1 else ""
            lines.append(f"  {_quote_key(output_key)}: {expr or 'null'}{separator}")
        lines.append("}")
        return "\n".join(lines)

    @staticmethod
    def value_to_jslt(
        value,
        output_key: str,
        date_column_output_key: Optional[str] = None,
        existing_date_format: Optional[str] = None,
        new_date_format: Optional[str] = None,
        timezone_id: Optional[str] = None
    ) -> str:
        """Render one mapping value as a JSLT expression ("null" when empty or unparseable)."""
        if value is None or not isinstance(value, str) or not value.strip():
            return "null"
        v = value.strip()

        const_match = CONST_PATTERN.fullmatch(v)
        if const_match:
            return quote_jslt_string(const_match.group(1))

        is_date_column = (
            date_column_output_key is not None
            and date_column_output_key == output_key
            and existing_date_format is not None
            and new_date_format is not None
        )

        if v.startswith("exp{"):
            inner = v[4:-1].strip() if v.endswith("}") else v[4:].strip()
            expr = _exp_to_jslt(inner)
            if expr is None:
                return "null"
            if is_date_column:
                return _format_time_parse_time(expr, existing_date_format, new_date_format, timezone_id)
            return expr

        field_expr = to_jslt_selector(v)
        if is_date_column:
            return _format_time_parse_time(field_expr, existing_date_format, new_date_format, timezone_id)
        return field_expr

    @staticmethod
    def resolve_group_by(record_group_by: Optional[str], header_mapping_json: str) -> Optional[str]:
        """
        Resolve "Record Group By" from output (mapped) names to source header names.

        Names missing from the mapping are kept as-is. Names mapped to a constant or
        an expression are dropped, grouping raw rows by them is meaningless.

        Args:
            record_group_by: Comma separated output names (e.g. "billNumber,type")
            header_mapping_json: Same mapping as for the JSLT: key = output name, value = input name

        Returns:
            Comma separated source header names
        """
        if record_group_by is None or not record_group_by.strip():
            return record_group_by
        mapping = _load_mapping(header_mapping_json)

        source_names = []
        for name in record_group_by.split(","):
            name = name.strip()
            if not name:
                continue
            if name not in mapping:
                source_names.append(name)
                continue
            value = mapping[name]
            if is_simple_field_name(value):
                source_names.append(value.strip())
        return ",".join(source_names)


def is_simple_field_name(value) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    return not value.strip().startswith(NON_FIELD_PREFIXES)


def is_valid_jslt_identifier(name: Optional[str]) -> bool:
    if not name:
        return False
    first = name[0]
    if not (first.isalpha() or first == "_"):
        return False
    return all(c.isalnum() or c == "_" for c in name[1:])


def to_jslt_selector(input_key: str) -> str:
    if is_valid_jslt_identifier(input_key):
        return "." + input_key
    return f"get-key(., {quote_jslt_string(input_key)})"


def quote_jslt_string(s: Optional[str]) -> str:
    if s is None:
        return '""'
    escaped = (
        s.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'


def _quote_key(key: str) -> str:
    return '"' + key.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _load_mapping(header_mapping_json: str) -> "OrderedDict[str, object]":
    try:
        mapping = json.loads(header_mapping_json, object_pairs_hook=OrderedDict)
    except (TypeError, ValueError) as e:
        raise TransformScriptError(f"Invalid header mapping JSON: {str(e)}") from e
    if not isinstance(mapping, dict):
        raise TransformScriptError("Header mapping JSON must be an object")
    return mapping


def _exp_to_jslt(inner: str) -> Optional[str]:
    """hdr{field} + 'lit' + 'lit2' -> .field + "litlit2"; None when no hdr{} reference."""
    hdr_match = HDR_IN_EXP_PATTERN.search(inner)
    if not hdr_match:
        return None
    field_selector = to_jslt_selector(hdr_match.group(1).strip())

    literals = []
    idx = 0
    while idx < len(inner):
        plus = inner.find("+", idx)
        if plus < 0:
            break
        quote_start = inner.find("'", plus + 1)
        if quote_start < 0:
            break
        quote_end = inner.find("'", quote_start + 1)
        if quote_end < 0:
            break
        part = inner[quote_start + 1:quote_end]
        if part:
            literals.append(part)
        idx = quote_end + 1

    if not literals:
        return field_selector
    return f"{field_selector} + {quote_jslt_string(''.join(literals))}"


def _format_time_parse_time(expr: str, existing_date_format: str, new_date_format: str,
                            timezone_id: Optional[str]) -> str:
    tz_arg = f", {quote_jslt_string(timezone_id)}" if timezone_id else ""
    parse_call = f"parse-time({expr}, {quote_jslt_string(existing_date_format)}{tz_arg})"
    return f"format-time({parse_call}, {quote_jslt_string(new_date_format)}{tz_arg})"
