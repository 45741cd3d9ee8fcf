"""
Models for transform-type dataflows.

TransformFlowProperties holds what flow.xml tells us about the legacy transform
processors (HeaderProcessor, GroupByWithLimit, JoltTransformJSON, attribution
fields). TransformContext is what the translator overlays onto the three
replacement blocks once the JSLT script and group-by list have been derived.
"""

from dataclasses import dataclass, fields
from typing import Optional


@dataclass
class TransformFlowProperties:
    header_mapping_json: Optional[str] = None
    date_column_output_key: Optional[str] = None
    existing_date_format: Optional[str] = None
    new_date_format: Optional[str] = None
    timezone_id: Optional[str] = None
    record_group_by: Optional[str] = None       # output/mapped names, resolved to source names later
    group_size: Optional[str] = None            # Minimum Group Record, or smallest Records Per Split < 100
    sort_headers: Optional[str] = None
    alphabetical_sort: Optional[str] = None
    jolt_spec: Optional[str] = None
    line_no: Optional[str] = None
    attribution_type: Optional[str] = None
    attribution_code: Optional[str] = None
    header_value: Optional[str] = None
    child_till_code: Optional[str] = None
    child_org_id: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class TransformContext:
    record_group_by_source: Optional[str] = None
    jslt_script: Optional[str] = None
    jolt_spec: Optional[str] = None
    group_size: Optional[str] = None
    sort_headers: Optional[str] = None
    alphabetical_sort: Optional[str] = None
    line_no: Optional[str] = None
    attribution_type: Optional[str] = None
    attribution_code: Optional[str] = None
    header_value: Optional[str] = None
    child_till_code: Optional[str] = None
    child_org_id: Optional[str] = None
