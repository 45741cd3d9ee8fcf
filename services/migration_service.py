"""
Migration run orchestrator.

Walks the legacy workspaces and their live dataflows, translates each dataflow
into a canvas dataflow on the new system and records one success/failure entry
per dataflow. A failure only ends the migration of that dataflow; the run
continues with the next one.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from models.dataflow import DataflowDetail, DataflowSummary, Workspace
from models.migration_run import MigrationRun
from models.neo_block import VersionUpdateRequest
from models.transform_flow import TransformContext
from services.block_definition_cache import BlockDefinitionCache
from services.block_graph_translator import BlockGraphTranslator
from services.concurrency_extractor import FlowXmlConcurrencyExtractor
from services.flow_xml_provider import FlowXmlProvider
from services.nifi_decryptor import NifiDecryptor
from services.result_logger import MigrationResultLogger
from services.secret_resolver import FlowXmlSecretResolver
from services.transform_properties_extractor import FlowXmlTransformPropertiesExtractor
from utils.jslt_mapping import JsltMappingUtil
from utils.jolt_spec import JoltSpecUtil
from utils.neo_rule_client import NeoRuleApiClient
from utils.nifi_clients import BlockDefinitionClient, NifiNewClient, NifiOldClient
import config as app_config


class MigrationService:
    """Migrates legacy dataflows to the new canvas dataflow system.

    One instance serves one run: it owns the run's block definition cache and
    result log.
    """

    def __init__(
        self,
        old_client: Optional[NifiOldClient] = None,
        new_client: Optional[NifiNewClient] = None,
        neo_rule_client: Optional[NeoRuleApiClient] = None,
        flow_xml_provider: Optional[FlowXmlProvider] = None,
        block_definition_client: Optional[BlockDefinitionClient] = None,
        decryptor: Optional[NifiDecryptor] = None,
        translator: Optional[BlockGraphTranslator] = None,
        result_logger: Optional[MigrationResultLogger] = None
    ):
        self.old_client = old_client or NifiOldClient()
        self.new_client = new_client or NifiNewClient()
        self.neo_rule_client = neo_rule_client or NeoRuleApiClient()
        self.flow_xml_provider = flow_xml_provider or FlowXmlProvider()
        self.translator = translator or BlockGraphTranslator()
        self.result_logger = result_logger or MigrationResultLogger()

        self.secret_resolver = FlowXmlSecretResolver(
            self.flow_xml_provider,
            BlockDefinitionCache(block_definition_client),
            decryptor or NifiDecryptor()
        )
        self.transform_properties_extractor = FlowXmlTransformPropertiesExtractor(self.flow_xml_provider)
        self.concurrency_extractor = FlowXmlConcurrencyExtractor(self.flow_xml_provider)
        self.logger = logging.getLogger(__name__)

    def run(self, workspace_id: Optional[str] = None, dataflow_id: Optional[str] = None,
            run_id: Optional[str] = None) -> MigrationRun:
        """
        Run migrate_all and write the summary.

        Returns:
            MigrationRun with status ENDED (or FAILED when the run itself crashed),
            the log/summary paths and whether any dataflow failed
        """
        migration_run = MigrationRun(
            run_id=run_id or new_run_id(),
            status="RUNNING",
            workspace_id=workspace_id,
            dataflow_id=dataflow_id,
            start_ts=datetime.now()
        )
        try:
            migration_run.log_path = self.migrate_all(workspace_id, dataflow_id)
            migration_run.summary_path = self.result_logger.write_summary()
            migration_run.has_failures = self.result_logger.has_failures()
            migration_run.status = "ENDED"
        except Exception as e:
            self.logger.error(f"Migration run {migration_run.run_id} failed: {str(e)}", exc_info=True)
            migration_run.status = "FAILED"
            migration_run.error = str(e)
            migration_run.log_path = self.result_logger.output_path
            migration_run.has_failures = True
        migration_run.end_ts = datetime.now()
        return migration_run

    def migrate_all(self, workspace_id: Optional[str] = None, dataflow_id: Optional[str] = None) -> str:
        """
        Migrate the selected workspaces.

        Args:
            workspace_id: Workspace id or name; None migrates every enabled workspace
            dataflow_id: Dataflow UUID; None migrates every live dataflow

        Returns:
            Path of the JSONL result log
        """
        workspace_id = _blank_to_none(workspace_id)
        dataflow_id = _blank_to_none(dataflow_id)
        self.logger.info(f"[migrate_all] START - workspace_id={workspace_id}, dataflow_id={dataflow_id}")
        self.result_logger.clear()

        workspaces = [
            ws for ws in self._candidate_workspaces(workspace_id)
            if ws.enabled and ws.matches(workspace_id)
        ]
        self.logger.info(f"[migrate_all] Found {len(workspaces)} workspace(s) to migrate")
        for workspace in workspaces:
            self.logger.info(f"[migrate_all] Migrating workspace: {workspace.name} (id={workspace.id})")
            self.migrate_workspace(workspace, dataflow_id)

        path = self.result_logger.output_path
        self.logger.info(f"[migrate_all] END - result log at {path}")
        return path

    def _candidate_workspaces(self, workspace_id: Optional[str]) -> List[Workspace]:
        if workspace_id and workspace_id.isdigit():
            workspace = self.old_client.get_workspace(workspace_id)
            return [workspace] if workspace is not None else []
        return self.old_client.get_workspaces()

    def migrate_workspace(self, workspace: Workspace, dataflow_id: Optional[str] = None):
        self.logger.info(f"[migrate_workspace] START - workspace={workspace.name} (id={workspace.id})")
        try:
            target = self._get_or_create_target_workspace(workspace)
        except Exception as e:
            self.logger.error(f"[migrate_workspace] Failed creating/fetching workspace: {str(e)}")
            self.result_logger.log_failure(workspace.name, None, None, "Failed creating/fetching workspace", e)
            return

        try:
            dataflows = [
                df for df in self.old_client.get_dataflows(workspace.id)
                if df.is_live() and _matches_dataflow(df, dataflow_id)
            ]
        except Exception as e:
            self.logger.error(f"[migrate_workspace] Failed listing dataflows: {str(e)}")
            self.result_logger.log_failure(workspace.name, None, None, "Failed listing dataflows", e)
            return
        self.logger.info(f"[migrate_workspace] Found {len(dataflows)} dataflow(s) to migrate")

        for summary in dataflows:
            self.migrate_dataflow(workspace, target, summary)
        self.logger.info(f"[migrate_workspace] END - workspace={workspace.name}")

    def _get_or_create_target_workspace(self, workspace: Workspace) -> Optional[Workspace]:
        wanted = workspace.name.lower()
        for existing in self.new_client.get_workspaces():
            if existing.enabled and existing.name and existing.name.lower() == wanted:
                self.logger.info(f"[migrate_workspace] Reusing existing workspace {workspace.name} -> {existing.id}")
                return existing
        created = self.new_client.create_workspace(workspace.name, workspace.organisations)
        self.logger.info(
            f"[migrate_workspace] Created workspace {workspace.name} -> {created.id if created else None}"
        )
        return created

    def migrate_dataflow(self, workspace: Workspace, target_workspace: Optional[Workspace],
                         summary: DataflowSummary):
        self.logger.info(f"[migrate_dataflow] START - dataflow={summary.name} (uuid={summary.uuid})")
        try:
            detail = self.old_client.get_dataflow_detail(workspace.id, summary.uuid)
            if detail is None:
                self.logger.error("[migrate_dataflow] Dataflow detail missing")
                self.result_logger.log_failure(workspace.name, summary.name, summary.uuid, "Dataflow detail missing")
                return

            self.logger.info("[migrate_dataflow] Resolving secrets")
            self.secret_resolver.resolve(detail, summary.uuid)

            transform_context = None
            if self.translator.is_transform_flow(detail):
                try:
                    transform_context = self.build_transform_context(detail, summary.uuid)
                except ValueError as e:
                    self.logger.error(f"[migrate_dataflow] Transform JSLT/group-by generation failed: {str(e)}")
                    self.result_logger.log_failure(
                        workspace.name, summary.name, summary.uuid,
                        "Transform JSLT/group-by generation failed", e
                    )
                    return

            neo_dataflow_id = self.neo_rule_client.create_canvas_dataflow(detail.name)
            if neo_dataflow_id is None:
                self.logger.error("[migrate_dataflow] Neo rule API not configured or create failed")
                self.result_logger.log_failure(
                    workspace.name, summary.name, summary.uuid,
                    "Neo rule API not configured or create canvas failed"
                )
                return

            version_id = self.neo_rule_client.get_first_version_id(neo_dataflow_id)
            if version_id is None:
                self.logger.error("[migrate_dataflow] Get versions failed")
                self.result_logger.log_failure(workspace.name, summary.name, summary.uuid, "Get versions failed")
                return

            self.logger.info("[migrate_dataflow] Building neo blocks from detail")
            neo_blocks = self.translator.build_neo_blocks(detail, transform_context)
            update_request = VersionUpdateRequest(
                blocks=neo_blocks,
                schedule=self.translator.get_schedule_cron(detail),
                tag=app_config.MIGRATION_TAG
            )
            self.logger.info(f"[migrate_dataflow] Updating version with {len(neo_blocks)} blocks")
            self.neo_rule_client.update_version(neo_dataflow_id, version_id, update_request)

            self.logger.info("[migrate_dataflow] Post-hook for connect+")
            self.neo_rule_client.post_hook_for_connect_plus(neo_dataflow_id, version_id)

            self.logger.info("[migrate_dataflow] Updating processor concurrency from flow.xml")
            self.update_processor_concurrency(summary.uuid, detail, neo_blocks, neo_dataflow_id, version_id)

            self.logger.info("[migrate_dataflow] Sending for approval")
            self.neo_rule_client.send_for_approval(neo_dataflow_id, version_id)
            self.logger.info("[migrate_dataflow] Approving version")
            self.neo_rule_client.approve_version(neo_dataflow_id, version_id)
            self.logger.info("[migrate_dataflow] Making dataflow live")
            self.neo_rule_client.make_live(neo_dataflow_id, version_id)

            self.logger.info(f"[migrate_dataflow] SUCCESS - dataflow={summary.name} -> neo_dataflow_id={neo_dataflow_id}")
            self.result_logger.log_success(
                workspace.name, summary.name, summary.uuid,
                f"Migrated with neo dataflow id {neo_dataflow_id}"
            )
        except Exception as e:
            self.logger.error(f"[migrate_dataflow] FAILED - dataflow={summary.name}: {str(e)}", exc_info=True)
            self.result_logger.log_failure(workspace.name, summary.name, summary.uuid, "Migration failed", e)
        self.logger.info(f"[migrate_dataflow] END - dataflow={summary.name}")

    def build_transform_context(self, detail: DataflowDetail, dataflow_uuid: str) -> TransformContext:
        """
        Harvest the transform processors of the dataflow and derive the JSLT
        script and source group-by list.

        Raises:
            TransformScriptError: If the header mapping is malformed
        """
        transform_block = self.translator.find_transform_block(detail)
        prefix = transform_block.name if transform_block is not None else None
        props = self.transform_properties_extractor.extract(dataflow_uuid, prefix)
        if props.jolt_spec:
            shape = JoltSpecUtil.get_expected_input_shape(props.jolt_spec)
            self.logger.info(f"[build_transform_context] Jolt spec of {prefix} expects {shape.name} input")

        jslt_script = None
        record_group_by_source = None
        if props.header_mapping_json:
            jslt_script = JsltMappingUtil.from_header_mapping(
                props.header_mapping_json,
                props.date_column_output_key,
                props.existing_date_format,
                props.new_date_format,
                props.timezone_id
            )
            if props.record_group_by is not None:
                record_group_by_source = JsltMappingUtil.resolve_group_by(
                    props.record_group_by, props.header_mapping_json
                )

        return TransformContext(
            record_group_by_source=record_group_by_source,
            jslt_script=jslt_script,
            jolt_spec=props.jolt_spec,
            group_size=props.group_size,
            sort_headers=props.sort_headers,
            alphabetical_sort=props.alphabetical_sort,
            line_no=props.line_no,
            attribution_type=props.attribution_type,
            attribution_code=props.attribution_code,
            header_value=props.header_value,
            child_till_code=props.child_till_code,
            child_org_id=props.child_org_id
        )

    def update_processor_concurrency(self, dataflow_uuid: str, detail: DataflowDetail, neo_blocks,
                                     neo_dataflow_id: str, neo_version_id: str) -> int:
        """Apply legacy processor concurrency to the new blocks. Returns the number of updates sent."""
        self.logger.info(
            f"[update_processor_concurrency] START - old_uuid={dataflow_uuid}, "
            f"neo_dataflow_id={neo_dataflow_id}, neo_version_id={neo_version_id}"
        )
        processors = self.concurrency_extractor.get_processors_with_concurrency_not_one(dataflow_uuid)
        requests = self.translator.plan_concurrency_updates(
            detail.blocks, neo_blocks, processors, neo_dataflow_id, neo_version_id
        )
        updated = 0
        for request in requests:
            try:
                self.new_client.update_processor_concurrency(request)
                updated += 1
                self.logger.info(
                    f"Updated concurrency to {request.concurrently_schedulable_task_count} "
                    f"for block {request.block_name} ({request.processor_type})"
                )
            except Exception as e:
                self.logger.warning(
                    f"[update_processor_concurrency] Failed to update concurrency for block "
                    f"{request.block_name}: {str(e)}"
                )
        self.logger.info(f"[update_processor_concurrency] END - {updated} update(s)")
        return updated


def new_run_id() -> str:
    return f"migration_run_{datetime.now().strftime('%Y%m%d%H%M%S')}_{uuid.uuid4().hex[:6]}"


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def _matches_dataflow(summary: DataflowSummary, dataflow_id: Optional[str]) -> bool:
    if not dataflow_id:
        return True
    return summary.uuid is not None and dataflow_id.lower() == summary.uuid.lower()
