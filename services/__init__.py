"""Services package for the NiFi dataflow migration."""

from .nifi_parser import NiFiParser
from .flow_xml_provider import FlowXmlProvider, FlowXmlLoadError
from .block_graph_translator import BlockGraphTranslator
from .migration_service import MigrationService

__all__ = [
    'NiFiParser',
    'FlowXmlProvider',
    'FlowXmlLoadError',
    'BlockGraphTranslator',
    'MigrationService'
]
