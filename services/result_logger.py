"""
Per-run migration result log.

Every success/failure is appended as one JSON line to
<log_dir>/nifi-migration-<epoch_ms>.jsonl; write_summary() produces
<log_dir>/nifi-migration-summary-<epoch_ms>.json with the succeeded and failed
entries (without timestamps) and their counts.
"""

import json
import logging
import os
import time
from datetime import datetime, timezone
from typing import List, Optional

import config as app_config


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class MigrationResultLogger:

    def __init__(self, log_dir: Optional[str] = None):
        self.log_dir = os.path.abspath(log_dir or app_config.LOG_DIR)
        os.makedirs(self.log_dir, exist_ok=True)
        self.succeeded: List[dict] = []
        self.failed: List[dict] = []
        self.output_file = self._new_output_file()
        self.logger = logging.getLogger(__name__)

    def _new_output_file(self) -> str:
        return os.path.join(self.log_dir, f"nifi-migration-{_epoch_millis()}.jsonl")

    def clear(self):
        """Forget recorded entries and start a new log file."""
        self.succeeded = []
        self.failed = []
        self.output_file = self._new_output_file()

    def log_success(self, workspace: Optional[str], dataflow: Optional[str],
                    dataflow_uuid: Optional[str] = None, message: str = ""):
        entry = self._base_entry(workspace, dataflow, dataflow_uuid)
        entry['status'] = 'success'
        entry['message'] = message
        self._write(entry)
        self.succeeded.append(self._copy_for_summary(entry))

    def log_failure(self, workspace: Optional[str], dataflow: Optional[str],
                    dataflow_uuid: Optional[str] = None, message: str = "",
                    error: Optional[BaseException] = None):
        entry = self._base_entry(workspace, dataflow, dataflow_uuid)
        entry['status'] = 'failure'
        entry['message'] = message
        if error is not None:
            entry['error'] = str(error)
        self._write(entry)
        self.failed.append(self._copy_for_summary(entry))

    @property
    def output_path(self) -> str:
        return self.output_file

    def has_failures(self) -> bool:
        return bool(self.failed)

    def write_summary(self) -> str:
        """
        Write the run summary file.

        Returns:
            Path of the summary file, or "" when it could not be written
        """
        summary = {
            'succeeded': list(self.succeeded),
            'failed': list(self.failed),
            'logFile': self.output_path,
            'summary': {
                'totalSucceeded': len(self.succeeded),
                'totalFailed': len(self.failed)
            }
        }
        summary_file = os.path.join(self.log_dir, f"nifi-migration-summary-{_epoch_millis()}.json")
        try:
            with open(summary_file, 'w') as f:
                json.dump(summary, f, indent=2)
        except OSError as e:
            self.logger.error(f"Unable to write migration summary: {str(e)}", exc_info=True)
            return ""
        self.logger.info(f"Migration summary written to {summary_file}")
        return summary_file

    @staticmethod
    def _base_entry(workspace, dataflow, dataflow_uuid) -> dict:
        entry = {
            'ts': datetime.now(timezone.utc).isoformat(),
            'workspace': workspace,
            'dataflow': dataflow
        }
        if dataflow_uuid is not None:
            entry['dataflowUuid'] = dataflow_uuid
        return entry

    @staticmethod
    def _copy_for_summary(entry: dict) -> dict:
        return {k: v for k, v in entry.items() if k != 'ts'}

    def _write(self, entry: dict):
        try:
            with open(self.output_file, 'a') as f:
                f.write(json.dumps(entry))
                f.write("\n")
        except OSError as e:
            self.logger.error(f"Unable to persist migration entry {entry}: {str(e)}")
