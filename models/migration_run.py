"""
Data model for one migration run.
Represents a single invocation of the migration over the selected workspaces/dataflows.
"""

from dataclasses import dataclass
from typing import Optional
from datetime import datetime


@dataclass
class MigrationRun:
    """A migration run tracked by MigrationRunService."""

    run_id: str                                 # PRIMARY KEY - Format: "migration_run_{timestamp}_{suffix}"
    status: str                                 # RUNNING | ENDED | FAILED

    # Optional fields
    workspace_id: Optional[str] = None          # scope filter: workspace id or name
    dataflow_id: Optional[str] = None           # scope filter: dataflow UUID
    start_ts: Optional[datetime] = None
    end_ts: Optional[datetime] = None
    log_path: Optional[str] = None              # JSONL result log
    summary_path: Optional[str] = None          # summary JSON
    has_failures: bool = False
    error: Optional[str] = None                 # set when the run itself crashed

    @classmethod
    def from_dict(cls, data: dict) -> 'MigrationRun':
        """Create MigrationRun from dictionary."""
        return cls(
            run_id=data['run_id'],
            status=data['status'],
            workspace_id=data.get('workspace_id'),
            dataflow_id=data.get('dataflow_id'),
            start_ts=data.get('start_ts'),
            end_ts=data.get('end_ts'),
            log_path=data.get('log_path'),
            summary_path=data.get('summary_path'),
            has_failures=bool(data.get('has_failures', False)),
            error=data.get('error')
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON response."""
        return {
            'run_id': self.run_id,
            'status': self.status,
            'workspace_id': self.workspace_id,
            'dataflow_id': self.dataflow_id,
            'start_ts': self.start_ts.isoformat() if self.start_ts else None,
            'end_ts': self.end_ts.isoformat() if self.end_ts else None,
            'log_path': self.log_path,
            'summary_path': self.summary_path,
            'has_failures': self.has_failures,
            'error': self.error
        }
