import logging
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

import config as app_config
from models.migration_run import MigrationRun
from services.migration_service import MigrationService, new_run_id


class MigrationRunService:
    """
    Starts migration runs on background threads and keeps their state in memory.

    Every run gets a fresh MigrationService (and with it its own block definition
    cache and result log), so runs never share state.
    """

    def __init__(self, service_factory: Optional[Callable[[], MigrationService]] = None):
        self.service_factory = service_factory or MigrationService
        self.runs: Dict[str, MigrationRun] = {}
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    def start_run(self, workspace_id: Optional[str] = None, dataflow_id: Optional[str] = None,
                  background: bool = True) -> MigrationRun:
        """
        Register a new run and execute it.

        Args:
            workspace_id: Optional workspace id or name filter
            dataflow_id: Optional dataflow UUID filter
            background: Run on a daemon thread (True) or in the calling thread

        Returns:
            The registered MigrationRun (RUNNING when started in the background)
        """
        run = MigrationRun(
            run_id=new_run_id(),
            status="RUNNING",
            workspace_id=_clean(workspace_id),
            dataflow_id=_clean(dataflow_id),
            start_ts=datetime.now()
        )
        with self._lock:
            self.runs[run.run_id] = run
        self.logger.info(f"Starting migration run {run.run_id} (workspace={run.workspace_id}, dataflow={run.dataflow_id})")

        if background:
            thread = threading.Thread(target=self._execute, args=(run.run_id,), daemon=True)
            thread.start()
        else:
            self._execute(run.run_id)
        return self.get_run(run.run_id)

    def _execute(self, run_id: str):
        run = self.runs[run_id]
        try:
            finished = self.service_factory().run(run.workspace_id, run.dataflow_id, run_id=run_id)
        except Exception as e:
            self.logger.error(f"Migration run {run_id} could not start: {str(e)}", exc_info=True)
            finished = MigrationRun(
                run_id=run_id,
                status="FAILED",
                workspace_id=run.workspace_id,
                dataflow_id=run.dataflow_id,
                start_ts=run.start_ts,
                end_ts=datetime.now(),
                has_failures=True,
                error=str(e)
            )
        with self._lock:
            self.runs[run_id] = finished
        self.logger.info(f"Migration run {run_id} finished with status {finished.status}")

    def get_run(self, run_id: str) -> Optional[MigrationRun]:
        with self._lock:
            return self.runs.get(run_id)

    def list_runs(self, limit: int = None) -> List[MigrationRun]:
        """Most recent runs first."""
        limit = limit or app_config.MAX_LISTED_RUNS
        with self._lock:
            runs = list(self.runs.values())
        runs.reverse()
        return runs[:limit]


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()
