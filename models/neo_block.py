"""
Data models for the new (canvas rule engine) dataflow API.
Serialized with camelCase keys, the shape expected by the version update endpoint.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class BlockPosition:
    x: int = 0
    y: int = 0

    def to_dict(self):
        return {'x': self.x, 'y': self.y}


@dataclass
class BlockRelation:
    """Successor edge from one block to another."""

    name: str
    to: str
    expression: str = "isSuccess()"
    status: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            'name': self.name,
            'expression': self.expression,
            'status': list(self.status),
            'to': self.to
        }


@dataclass
class NeoBlock:
    name: str
    type: str
    source: bool = False
    config: Dict[str, Any] = field(default_factory=dict)
    variable_config_key_map: Dict[str, str] = field(default_factory=dict)
    position: BlockPosition = field(default_factory=BlockPosition)
    relations: List[BlockRelation] = field(default_factory=list)

    def to_dict(self):
        return {
            'name': self.name,
            'type': self.type,
            'source': self.source,
            'config': dict(self.config),
            'variableConfigKeyMap': dict(self.variable_config_key_map),
            'position': self.position.to_dict(),
            'relations': [r.to_dict() for r in self.relations]
        }


@dataclass
class VersionUpdateRequest:
    blocks: List[NeoBlock]
    schedule: str
    tag: str = "migration"

    def to_dict(self):
        return {
            'blocks': [b.to_dict() for b in self.blocks],
            'schedule': self.schedule,
            'tag': self.tag
        }


@dataclass
class ProcessorConcurrencyRequest:
    """Body of PUT /processors/concurrency on the new system."""

    block_type: str
    block_name: str
    processor_type: str
    concurrently_schedulable_task_count: int
    neo_dataflow_id: Optional[str] = None
    neo_version_id: Optional[str] = None
    block_id: str = ""

    def to_dict(self):
        body = {
            'neoDataflowId': self.neo_dataflow_id,
            'neoVersionId': self.neo_version_id,
            'blockType': self.block_type,
            'blockId': self.block_id,
            'blockName': self.block_name,
            'processorType': self.processor_type,
            'concurrentlySchedulableTaskCount': self.concurrently_schedulable_task_count
        }
        return {k: v for k, v in body.items() if v is not None}
