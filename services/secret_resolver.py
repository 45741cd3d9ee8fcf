"""
Recovers masked block field values from flow.xml.

The legacy API hides sensitive values (blank, "null" or "********"). The same
values are present in the dataflow's process group of flow.xml, on the
processor named <blockName>_<processorDefinitionId>, under the property named
by the block definition's nifiKey.
"""

import logging
from typing import Optional

from lxml import etree

from models.block_definition import BlockDefinition
from models.dataflow import Block, DataflowDetail
from services.block_definition_cache import BlockDefinitionCache
from services.flow_xml_provider import FlowXmlProvider
from services.nifi_decryptor import NifiDecryptor
from services.nifi_parser import NiFiParser

REDACTION_MARKER = "********"


def is_masked(value: Optional[str]) -> bool:
    if value is None:
        return True
    trimmed = value.strip()
    return not trimmed or trimmed.lower() == "null" or trimmed == REDACTION_MARKER


def property_match_key(nifi_key: Optional[str]) -> Optional[str]:
    """Last dot-separated segment of a nifiKey."""
    if nifi_key is None:
        return None
    return nifi_key.split(".")[-1]


class FlowXmlSecretResolver:

    def __init__(
        self,
        flow_xml_provider: FlowXmlProvider,
        block_definition_cache: BlockDefinitionCache,
        decryptor: NifiDecryptor
    ):
        self.flow_xml_provider = flow_xml_provider
        self.block_definition_cache = block_definition_cache
        self.decryptor = decryptor
        self.logger = logging.getLogger(__name__)

    def resolve(self, detail: DataflowDetail, dataflow_uuid: str) -> int:
        """
        Replace masked field values of detail in place with values read from
        flow.xml, decrypted when possible.

        Args:
            detail: Legacy dataflow; its fields are mutated
            dataflow_uuid: Id of the dataflow's process group in flow.xml

        Returns:
            Number of fields that were resolved

        Raises:
            FlowXmlLoadError: If flow.xml cannot be loaded
        """
        if detail is None or not detail.blocks:
            return 0
        root = self.flow_xml_provider.get_flow_tree()
        group = NiFiParser.find_process_group_by_id(root, dataflow_uuid)
        if group is None:
            self.logger.warning(f"Dataflow {detail.name} not found by uuid {dataflow_uuid} in flow.xml")
            return 0

        resolved_count = 0
        for block in detail.blocks:
            definition = self.block_definition_cache.get(block.block_type_id)
            if definition is None:
                continue
            for field in block.fields:
                if not is_masked(field.value):
                    continue
                resolved = self._resolve_field_value(group, block, definition, field.name)
                if resolved is not None:
                    field.value = self.decryptor.decrypt(resolved)
                    resolved_count += 1
        if resolved_count:
            self.logger.info(f"Resolved {resolved_count} masked field(s) for dataflow {detail.name}")
        return resolved_count

    def _resolve_field_value(self, group: etree._Element, block: Block,
                             definition: BlockDefinition, field_name: Optional[str]) -> Optional[str]:
        field_id = definition.field_id_for(field_name)
        if field_id is None:
            return None
        for processor_def in definition.processors:
            for mapping in processor_def.properties:
                if mapping.field_id is None or mapping.field_id != field_id:
                    continue
                candidate = self._find_processor_property(
                    group, f"{block.name}_{processor_def.id}", mapping.nifi_key
                )
                if candidate is not None:
                    return candidate
        return None

    @staticmethod
    def _find_processor_property(group: etree._Element, processor_name_prefix: str,
                                 nifi_key: Optional[str]) -> Optional[str]:
        target_key = property_match_key(nifi_key)
        if target_key is None:
            return None
        target_key = target_key.lower()
        for processor in NiFiParser.iter_processors(group):
            name = NiFiParser.child_text(processor, 'name')
            if name is None or not name.startswith(processor_name_prefix):
                continue
            for prop_name, prop_value in NiFiParser.processor_properties(processor).items():
                if prop_name.lower() == target_key and prop_value:
                    return prop_value
        return None
