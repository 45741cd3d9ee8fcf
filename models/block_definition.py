"""
Block type definition returned by the glue block-definition endpoint.
Maps a block's display field names to the NiFi processor property keys that store them.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class UiField:
    id: Optional[int] = None
    name: Optional[str] = None


@dataclass
class PropertyMapping:
    field_id: Optional[int] = None
    nifi_key: Optional[str] = None


@dataclass
class ProcessorDefinition:
    id: Optional[int] = None
    properties: List[PropertyMapping] = field(default_factory=list)


@dataclass
class BlockDefinition:
    ui_fields: List[UiField] = field(default_factory=list)
    processors: List[ProcessorDefinition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'BlockDefinition':
        return cls(
            ui_fields=[
                UiField(id=f.get('id'), name=f.get('name'))
                for f in data.get('uiFields') or []
            ],
            processors=[
                ProcessorDefinition(
                    id=p.get('id'),
                    properties=[
                        PropertyMapping(field_id=m.get('fieldId'), nifi_key=m.get('nifiKey'))
                        for m in p.get('properties') or []
                    ]
                )
                for p in data.get('processors') or []
            ]
        )

    def field_id_for(self, field_name: Optional[str]) -> Optional[int]:
        """Id of the ui field whose name equals field_name (case-insensitive), or None."""
        if not field_name:
            return None
        wanted = field_name.lower()
        for ui_field in self.ui_fields:
            if ui_field.name and ui_field.name.lower() == wanted:
                return ui_field.id
        return None
