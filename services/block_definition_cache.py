import logging
from typing import Dict, Optional

from models.block_definition import BlockDefinition
from utils.nifi_clients import BlockDefinitionClient


class BlockDefinitionCache:
    """Per-run cache of block definitions keyed by block type id.

    Failed lookups are remembered as missing so each type id is fetched at most
    once per run.
    """

    def __init__(self, client: Optional[BlockDefinitionClient] = None):
        self.client = client or BlockDefinitionClient()
        self._definitions: Dict[int, Optional[BlockDefinition]] = {}
        self.logger = logging.getLogger(__name__)

    def get(self, block_type_id: int) -> Optional[BlockDefinition]:
        if block_type_id in self._definitions:
            return self._definitions[block_type_id]
        try:
            definition = self.client.get_block_definition(block_type_id)
        except Exception as e:
            self.logger.warning(f"Unable to fetch block definition for {block_type_id}: {str(e)}")
            definition = None
        self._definitions[block_type_id] = definition
        return definition

    def __len__(self):
        return len(self._definitions)
