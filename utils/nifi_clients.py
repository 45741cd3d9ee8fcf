"""
REST clients for the legacy (old) and new connect dataflow systems, and for
the glue block-definition lookup.
"""

import logging
from typing import List, Optional

import requests

import config as app_config
from models.block_definition import BlockDefinition
from models.dataflow import DataflowDetail, DataflowSummary, Workspace
from models.neo_block import ProcessorConcurrencyRequest

logger = logging.getLogger(__name__)


class NifiApiClient:
    """Thin JSON REST wrapper with basic auth and the migration source header."""

    def __init__(self, base_url: str, basic_auth_token: str = "", source_header: str = "",
                 session: Optional[requests.Session] = None, timeout: int = None):
        self.base_url = (base_url or "").rstrip("/")
        self.basic_auth_token = basic_auth_token
        self.source_header = source_header
        self.session = session or requests.Session()
        self.timeout = timeout or app_config.HTTP_TIMEOUT_SECONDS

    def get(self, path: str, include_migration_header: bool = False, params: dict = None):
        return self._exchange("GET", path, include_migration_header, params=params)

    def post(self, path: str, body=None, include_migration_header: bool = False):
        return self._exchange("POST", path, include_migration_header, body=body)

    def put(self, path: str, body=None, include_migration_header: bool = False):
        return self._exchange("PUT", path, include_migration_header, body=body)

    def _headers(self, include_migration_header: bool) -> dict:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.basic_auth_token:
            headers["Authorization"] = f"Basic {self.basic_auth_token}"
        if include_migration_header and self.source_header:
            headers["X-CAP-SOURCE"] = self.source_header
        return headers

    def _exchange(self, method: str, path: str, include_migration_header: bool,
                  body=None, params: dict = None):
        if not self.base_url:
            raise Exception(f"Base URL not configured for {method} {path}")
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url,
                headers=self._headers(include_migration_header),
                json=body,
                params=params,
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"HTTP {method} {url} failed: {str(e)}")
            raise
        if not response.content:
            return None
        return response.json()


class NifiOldClient:
    """Read-only access to the legacy system's workspaces and dataflows."""

    def __init__(self, client: NifiApiClient = None):
        self.client = client or NifiApiClient(
            app_config.OLD_BASE_URL, app_config.BASIC_AUTH_TOKEN, app_config.SOURCE_HEADER
        )

    def get_workspaces(self) -> List[Workspace]:
        body = self.client.get("/workspaces")
        return [Workspace.from_dict(w) for w in body or []]

    def get_workspace(self, workspace_id: str) -> Optional[Workspace]:
        """Fetch a single workspace by id."""
        if not workspace_id or not workspace_id.strip():
            return None
        body = self.client.get(f"/workspaces/{workspace_id.strip()}")
        return Workspace.from_dict(body) if body else None

    def get_dataflows(self, workspace_id) -> List[DataflowSummary]:
        body = self.client.get(f"/workspaces/{workspace_id}/dataflows")
        return [DataflowSummary.from_dict(d) for d in body or []]

    def get_dataflow_detail(self, workspace_id, uuid: str) -> Optional[DataflowDetail]:
        body = self.client.get(f"/workspaces/{workspace_id}/dataflows/{uuid}")
        return DataflowDetail.from_dict(body) if body else None


class NifiNewClient:
    """Workspace and processor operations on the new system."""

    def __init__(self, client: NifiApiClient = None):
        self.client = client or NifiApiClient(
            app_config.NEW_BASE_URL, app_config.BASIC_AUTH_TOKEN, app_config.SOURCE_HEADER
        )

    def get_workspaces(self) -> List[Workspace]:
        body = self.client.get("/workspaces", include_migration_header=True)
        return [Workspace.from_dict(w) for w in body or []]

    def create_workspace(self, name: str, organisations: List[dict]) -> Optional[Workspace]:
        body = self.client.post(
            "/workspaces",
            {"name": name, "organisations": organisations},
            include_migration_header=True
        )
        return Workspace.from_dict(body) if body else None

    def update_processor_concurrency(self, request: ProcessorConcurrencyRequest):
        """Set concurrentlySchedulableTaskCount for one processor of a new dataflow."""
        self.client.put("/processors/concurrency", request.to_dict(), include_migration_header=True)


class BlockDefinitionClient:
    """Glue lookup from a block type id to its ui fields and processor property keys."""

    def __init__(self, url_template: str = None, basic_auth_token: str = None,
                 session: Optional[requests.Session] = None):
        self.url_template = url_template if url_template is not None else app_config.BLOCK_DEFINITION_URL
        self.basic_auth_token = basic_auth_token if basic_auth_token is not None else app_config.BASIC_AUTH_TOKEN
        self.session = session or requests.Session()

    def get_block_definition(self, block_type_id: int) -> BlockDefinition:
        if not self.url_template:
            raise Exception("Block definition URL not configured")
        url = self.url_template.replace("{blockTypeId}", str(block_type_id))
        headers = {"Accept": "application/json"}
        if self.basic_auth_token:
            headers["Authorization"] = f"Basic {self.basic_auth_token}"
        response = self.session.get(url, headers=headers, timeout=app_config.HTTP_TIMEOUT_SECONDS)
        response.raise_for_status()
        return BlockDefinition.from_dict(response.json() or {})
