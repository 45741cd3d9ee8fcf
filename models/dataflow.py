"""
Data models for the legacy dataflow API.
Mirrors the JSON returned by the old system's workspace/dataflow endpoints.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class PossibleValue:
    value: Optional[str] = None
    label: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'PossibleValue':
        return cls(value=data.get('value'), label=data.get('label') or data.get('name'))

    def to_dict(self):
        return {'value': self.value, 'label': self.label}


@dataclass
class Field:
    """One configuration field of a legacy block."""

    key: Optional[str] = None
    name: Optional[str] = None                  # display name, joins to block definition uiFields
    value: Optional[str] = None                 # may be masked, blank, literal or "<varKey>___<literal>"
    id: Optional[str] = None
    type: Optional[str] = None
    masked: bool = False
    possible_values: List[PossibleValue] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'Field':
        """Create Field from the legacy API JSON."""
        value = data.get('value')
        return cls(
            key=data.get('key'),
            name=data.get('name'),
            value=str(value) if value is not None else None,
            id=str(data['id']) if data.get('id') is not None else None,
            type=data.get('type'),
            masked=bool(data.get('masked', False)),
            possible_values=[PossibleValue.from_dict(p) for p in data.get('possibleValues') or []]
        )

    def to_dict(self):
        return {
            'id': self.id,
            'key': self.key,
            'name': self.name,
            'type': self.type,
            'masked': self.masked,
            'value': self.value,
            'possibleValues': [p.to_dict() for p in self.possible_values]
        }


@dataclass
class Block:
    """A configured unit of work in a legacy dataflow."""

    name: str
    type: Optional[str] = None
    order: int = 0
    block_type_id: int = 0
    source: bool = False
    fields: List[Field] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'Block':
        return cls(
            name=data.get('name') or '',
            type=data.get('type'),
            order=int(data.get('order') or 0),
            block_type_id=int(data.get('blockTypeId') or 0),
            source=bool(data.get('source', data.get('isSource', False))),
            fields=[Field.from_dict(f) for f in data.get('fields') or []]
        )

    def to_dict(self):
        return {
            'blockTypeId': self.block_type_id,
            'name': self.name,
            'type': self.type,
            'order': self.order,
            'source': self.source,
            'fields': [f.to_dict() for f in self.fields]
        }


@dataclass
class Schedule:
    cron: Optional[str] = None
    schedule_expression: Optional[str] = None
    cron_frequency_in_seconds: Optional[int] = None
    enabled: bool = False
    schedule_start_time: Optional[str] = None
    schedule_stop_time: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'Schedule':
        return cls(
            cron=data.get('cron'),
            schedule_expression=data.get('scheduleExpression'),
            cron_frequency_in_seconds=data.get('cronFrequencyInSeconds'),
            enabled=bool(data.get('enabled', False)),
            schedule_start_time=data.get('scheduleStartTime'),
            schedule_stop_time=data.get('scheduleStopTime')
        )


@dataclass
class DataflowSummary:
    """Entry of a workspace's dataflow listing."""

    name: str
    uuid: Optional[str] = None
    state: Optional[str] = None                 # Live | Stopped | Draft ...

    @classmethod
    def from_dict(cls, data: dict) -> 'DataflowSummary':
        status = data.get('status') or {}
        return cls(
            name=data.get('name') or '',
            uuid=data.get('uuid'),
            state=status.get('state') if isinstance(status, dict) else status
        )

    def is_live(self) -> bool:
        return self.state is not None and self.state.lower() == 'live'


@dataclass
class DataflowDetail:
    """A legacy dataflow with its ordered blocks and schedule."""

    name: str
    uuid: Optional[str] = None
    blocks: List[Block] = field(default_factory=list)
    schedule: Optional[Schedule] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'DataflowDetail':
        schedule = data.get('schedule')
        return cls(
            name=data.get('name') or '',
            uuid=data.get('uuid'),
            blocks=[Block.from_dict(b) for b in data.get('blocks') or []],
            schedule=Schedule.from_dict(schedule) if schedule else None
        )


@dataclass
class Workspace:
    name: str
    id: Optional[int] = None
    uuid: Optional[str] = None
    enabled: bool = True
    organisations: List[dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'Workspace':
        return cls(
            name=data.get('name') or '',
            id=data.get('id'),
            uuid=data.get('uuid'),
            enabled=bool(data.get('enabled', True)),
            organisations=list(data.get('organisations') or [])
        )

    def matches(self, workspace_id: Optional[str]) -> bool:
        """True when no filter is given, or the filter equals the id or (case-insensitive) the name."""
        if not workspace_id:
            return True
        wanted = workspace_id.strip()
        if self.id is not None and wanted == str(self.id):
            return True
        return bool(self.name) and wanted.lower() == self.name.lower()
