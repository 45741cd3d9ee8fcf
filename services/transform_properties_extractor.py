"""
Harvests the properties of legacy transform processors from flow.xml.

HeaderProcessor carries the rename mapping and date conversion, GroupByWithLimit /
AggregatorProcessor carry the group-by fields and group size, JoltTransformJSON
carries the jolt spec, and EvaluateJsonPath-style processors carry the
attribution fields (snake_case or camelCase).
"""

import logging
from typing import Dict, Optional, Sequence

from models.transform_flow import TransformFlowProperties
from services.flow_xml_provider import FlowXmlProvider
from services.nifi_parser import NiFiParser

RENAME_HEADERS_MAPPING = "Rename Headers Mapping"
DATE_COLUMN_HEADER = "Date Column Header"
EXISTING_DATE_FORMAT = "Existing Date Format"
NEW_DATE_FORMAT = "New Date Format"
TIMEZONE = "Timezone"

RECORD_GROUP_BY = "Record Group By"
MINIMUM_GROUP_RECORD = "Minimum Group Record"
RECORDS_PER_SPLIT = "Records Per Split"
RECORDS_PER_SPLIT_MAX = 100

SORT_HEADERS = "Sort Headers"
USE_ALPHABETICAL_SORT = "Use Alphabetical Sort"
JOLT_SPECIFICATION = "jolt-spec"
LINE_NO = "lineNos"

# (attribute, alternative property names) - first non-blank wins
ATTRIBUTION_KEYS = (
    ("attribution_type", ("attribution_type", "attributionType")),
    ("attribution_code", ("attribution_code", "attributionCode")),
    ("header_value", ("header_value", "headerValue")),
    ("child_till_code", ("child_till_code", "childTillCode")),
    ("child_org_id", ("child_org_id", "childOrgId")),
)

# property name -> TransformFlowProperties attribute, applied to every processor
SIMPLE_PROPERTIES = (
    (RECORD_GROUP_BY, "record_group_by"),
    (MINIMUM_GROUP_RECORD, "group_size"),
    (SORT_HEADERS, "sort_headers"),
    (USE_ALPHABETICAL_SORT, "alphabetical_sort"),
    (JOLT_SPECIFICATION, "jolt_spec"),
    (LINE_NO, "line_no"),
)

HEADER_PROCESSOR_PROPERTIES = (
    (RENAME_HEADERS_MAPPING, "header_mapping_json"),
    (DATE_COLUMN_HEADER, "date_column_output_key"),
    (EXISTING_DATE_FORMAT, "existing_date_format"),
    (NEW_DATE_FORMAT, "new_date_format"),
    (TIMEZONE, "timezone_id"),
)


def _non_blank(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def _first_non_blank(props: Dict[str, str], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = _non_blank(props.get(key))
        if value is not None:
            return value
    return None


class FlowXmlTransformPropertiesExtractor:

    def __init__(self, flow_xml_provider: FlowXmlProvider):
        self.flow_xml_provider = flow_xml_provider
        self.logger = logging.getLogger(__name__)

    def extract(self, dataflow_uuid: str, block_name_prefix: Optional[str] = None) -> TransformFlowProperties:
        """
        Collect transform properties from the dataflow's processors.

        Args:
            dataflow_uuid: Id of the dataflow's process group in flow.xml
            block_name_prefix: When set, only processors whose name starts with it are read

        Returns:
            TransformFlowProperties; all fields None when the group is missing
        """
        out = TransformFlowProperties()
        root = self.flow_xml_provider.get_flow_tree()
        group = NiFiParser.find_process_group_by_id(root, dataflow_uuid)
        if group is None:
            self.logger.warning(f"Dataflow process group not found in flow.xml for uuid={dataflow_uuid}")
            return out

        records_per_split = None
        for processor in NiFiParser.iter_processors(group):
            if block_name_prefix:
                name = NiFiParser.child_text(processor, 'name')
                if name is None or not name.startswith(block_name_prefix):
                    continue
            props = NiFiParser.processor_properties(processor)

            if RENAME_HEADERS_MAPPING in props:
                self._apply(props, HEADER_PROCESSOR_PROPERTIES, out)
            self._apply(props, SIMPLE_PROPERTIES, out)

            candidate = self._small_records_per_split(props.get(RECORDS_PER_SPLIT))
            if candidate is not None and (records_per_split is None or int(candidate) < int(records_per_split)):
                records_per_split = candidate

            for attr, keys in ATTRIBUTION_KEYS:
                value = _first_non_blank(props, keys)
                if value is not None:
                    setattr(out, attr, value)

        if out.group_size is None and records_per_split is not None:
            out.group_size = records_per_split
        return out

    @staticmethod
    def _apply(props: Dict[str, str], names, out: TransformFlowProperties):
        for prop_name, attr in names:
            value = _non_blank(props.get(prop_name))
            if value is not None:
                setattr(out, attr, value)

    @staticmethod
    def _small_records_per_split(value: Optional[str]) -> Optional[str]:
        value = _non_blank(value)
        if value is None:
            return None
        try:
            number = int(value)
        except ValueError:
            return None
        if 0 <= number < RECORDS_PER_SPLIT_MAX:
            return value
        return None
