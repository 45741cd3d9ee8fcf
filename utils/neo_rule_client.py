"""
Client for the neo rule (canvas dataflow) API: create canvas dataflow, list
versions, update a version with blocks and schedule, post-hook, approval and
go-live. Authenticates with a Cookie and the x-cap-remote-user header.
"""

import logging
import time
from typing import Optional

import requests

import config as app_config
from models.neo_block import VersionUpdateRequest


class NeoRuleApiError(Exception):
    """Raised when the neo rule API rejects a request or answers without success."""


class NeoRuleApiClient:

    def __init__(
        self,
        base_url: Optional[str] = None,
        application_id: Optional[str] = None,
        context: Optional[str] = None,
        cookie: Optional[str] = None,
        remote_user: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        self.base_url = (base_url if base_url is not None else app_config.NEO_RULE_BASE_URL).rstrip("/")
        self.application_id = application_id if application_id is not None else app_config.NEO_RULE_APPLICATION_ID
        self.context = context or app_config.NEO_RULE_CONTEXT
        self.cookie = cookie if cookie is not None else app_config.NEO_RULE_COOKIE
        self.remote_user = remote_user if remote_user is not None else app_config.NEO_RULE_REMOTE_USER
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    def is_configured(self) -> bool:
        return bool(self.base_url)

    def create_canvas_dataflow(self, dataflow_name: str) -> Optional[str]:
        """
        Create an empty canvas dataflow. POST /rule/create?time=...

        Args:
            dataflow_name: Name of the new dataflow (same as the legacy one)

        Returns:
            The created rule id (_id), or None if the API is not configured or
            the response does not report success
        """
        if not self.is_configured():
            self.logger.warning("[NeoRuleApi] neo-rule base URL not configured; skipping create")
            return None
        body = {
            "name": dataflow_name,
            "tags": [app_config.MIGRATION_TAG],
            "applicationId": self.application_id,
            "context": self.context
        }
        resp = self._request("POST", "/rule/create", params={"time": int(time.time() * 1000)}, body=body)
        result = (resp or {}).get("result") if isinstance(resp, dict) else None
        if resp and resp.get("success") and result:
            rule_id = result.get("_id")
            self.logger.info(f"[NeoRuleApi] Created canvas dataflow {dataflow_name} -> id={rule_id}")
            return rule_id
        self.logger.warning(f"[NeoRuleApi] Create response missing or not success: {resp}")
        return None

    def get_first_version_id(self, dataflow_id: str) -> Optional[str]:
        """Id of the first (DRAFT) version of a dataflow. GET /rule/{id}/versions"""
        if not self.is_configured():
            return None
        resp = self._request(
            "GET", f"/rule/{dataflow_id}/versions",
            params={"ruleType": "org", "context": self.context}
        )
        versions = ((resp or {}).get("result") or {}).get("versions") if isinstance(resp, dict) else None
        if resp and resp.get("success") and versions:
            version_id = versions[0].get("_id")
            self.logger.info(f"[NeoRuleApi] Got version id={version_id} for dataflow {dataflow_id}")
            return version_id
        self.logger.warning(f"[NeoRuleApi] Get versions response missing or empty: {resp}")
        return None

    def update_version(self, dataflow_id: str, version_id: str, request: VersionUpdateRequest):
        """Replace a version's blocks, schedule and tag."""
        self._require_configured()
        self._request(
            "POST", f"/rule/{dataflow_id}/version/{version_id}/update",
            params={"context": self.context}, body=request.to_dict()
        )
        self.logger.info(f"[NeoRuleApi] Updated version {version_id} for dataflow {dataflow_id}")

    def post_hook_for_connect_plus(self, dataflow_id: str, version_id: str):
        """Materialize the version on the connect+ side."""
        self._require_configured()
        resp = self._request("POST", f"/rule/{dataflow_id}/version/{version_id}/post-hook-for-connect-plus")
        if resp and resp.get("success"):
            self.logger.info(f"[NeoRuleApi] Post-hook success for dataflow {dataflow_id}")
        else:
            self.logger.warning(f"[NeoRuleApi] Post-hook response: {resp}")

    def send_for_approval(self, dataflow_id: str, version_id: str):
        self._version_action(dataflow_id, version_id, "send-for-approval")

    def approve_version(self, dataflow_id: str, version_id: str):
        self._version_action(dataflow_id, version_id, "approve")

    def make_live(self, dataflow_id: str, version_id: str):
        self._version_action(dataflow_id, version_id, "make-live")

    def _version_action(self, dataflow_id: str, version_id: str, action: str):
        self._require_configured()
        resp = self._request(
            "POST", f"/rule/{dataflow_id}/version/{version_id}/{action}",
            params={"context": self.context}
        )
        if isinstance(resp, dict) and resp.get("success") is False:
            raise NeoRuleApiError(f"{action} failed for dataflow {dataflow_id}: {resp}")
        self.logger.info(f"[NeoRuleApi] {action} done for dataflow {dataflow_id} version {version_id}")

    def _require_configured(self):
        if not self.is_configured():
            raise NeoRuleApiError("neo-rule base URL not configured")

    def _headers(self) -> dict:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.cookie:
            headers["Cookie"] = self.cookie
        if self.remote_user:
            headers["x-cap-remote-user"] = self.remote_user
        return headers

    def _request(self, method: str, path: str, params: dict = None, body=None):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url,
                headers=self._headers(),
                params=params,
                json=body,
                timeout=app_config.HTTP_TIMEOUT_SECONDS
            )
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(f"[NeoRuleApi] {method} {path} failed: {str(e)}")
            raise NeoRuleApiError(f"{method} {path} failed: {str(e)}") from e
        if not response.content:
            return None
        return response.json()
