import logging
from dataclasses import dataclass
from typing import List, Optional

from services.flow_xml_provider import FlowXmlProvider
from services.nifi_parser import NiFiParser

# Carried over even at concurrency 1
HTTP_PROCESSORS = frozenset([
    "org.apache.nifi.processors.standard.InvokeHTTP",
    "com.capillary.foundation.processors.InvokeHttpV2",
    "com.capillary.foundation.processors.OAuthClientProcessor",
])


@dataclass
class ProcessorConcurrencyInfo:
    processor_name: str
    processor_class: str
    current_concurrency: int


def parse_concurrency(value: Optional[str]) -> int:
    if value is None or not value.strip():
        return 1
    try:
        return int(value.strip())
    except ValueError:
        return 1


class FlowXmlConcurrencyExtractor:
    """Finds processors of a dataflow whose concurrency must be carried over to the new dataflow."""

    def __init__(self, flow_xml_provider: FlowXmlProvider):
        self.flow_xml_provider = flow_xml_provider
        self.logger = logging.getLogger(__name__)

    def get_processors_with_concurrency_not_one(self, dataflow_uuid: str) -> List[ProcessorConcurrencyInfo]:
        """
        Processors under the dataflow's process group with maxConcurrentTasks != 1,
        plus every allow-listed HTTP processor whatever its value.

        Returns an empty list when the process group is not in flow.xml.
        """
        self.logger.info(f"[get_processors_with_concurrency_not_one] START - dataflow_uuid={dataflow_uuid}")
        result = []
        root = self.flow_xml_provider.get_flow_tree()
        group = NiFiParser.find_process_group_by_id(root, dataflow_uuid)
        if group is None:
            self.logger.warning(f"Dataflow process group not found in flow.xml for uuid={dataflow_uuid}")
            return result

        for processor in NiFiParser.iter_processors(group):
            processor_class = NiFiParser.child_text(processor, 'class') or ""
            concurrency = parse_concurrency(NiFiParser.child_text(processor, 'maxConcurrentTasks'))
            if concurrency == 1 and processor_class not in HTTP_PROCESSORS:
                continue
            result.append(ProcessorConcurrencyInfo(
                processor_name=NiFiParser.child_text(processor, 'name') or "",
                processor_class=processor_class,
                current_concurrency=concurrency
            ))
        self.logger.info(f"[get_processors_with_concurrency_not_one] END - found {len(result)} processor(s)")
        return result
