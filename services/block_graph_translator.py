"""
Builds the new dataflow's block graph from a legacy dataflow.

A legacy transform_to_* block is expanded into a csv -> jslt -> jolt sub-chain.
Every legacy block becomes a chain (of one block, or three for the transform
block) with an entry and an exit node; chains are ordered by their entry order
and linked exit -> next entry. Config starts from the catalog defaults of the
new type and is overlaid from the transform context or the legacy fields.
"""

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import config as app_config
from models.dataflow import Block, DataflowDetail
from models.neo_block import BlockPosition, BlockRelation, NeoBlock, ProcessorConcurrencyRequest
from models.transform_flow import TransformContext
from services.block_catalog import BlockCatalog
from services.block_type_mapping import BlockTypeMapping
from services.concurrency_extractor import ProcessorConcurrencyInfo

TRANSFORM_TYPE_PREFIX = "transform_to_"
VARIABLE_MARKER = "___"
SUCCESS_EXPRESSION = "isSuccess()"

CSV_PART = "csv"
JSLT_PART = "jslt"
JOLT_PART = "jolt"

# (part, name suffix, new type, order offset)
TRANSFORM_EXPANSION = (
    (CSV_PART, "-csv", "convert_csv_to_json", 0),
    (JSLT_PART, "-jslt", "jslt_transform", 1),
    (JOLT_PART, "-jolt", "jolt_transform", 2),
)

INVOKE_HTTP_CLASS = "org.apache.nifi.processors.standard.InvokeHTTP"
INVOKE_HTTP_V2_CLASS = "com.capillary.foundation.processors.InvokeHttpV2"


@dataclass
class PlannedBlock:
    name: str
    new_type: Optional[str]
    order: int
    source: bool
    legacy_block: Block
    transform_part: Optional[str] = None


@dataclass
class BlockChain:
    """Linear sub-chain produced from one legacy block."""

    nodes: List[PlannedBlock] = field(default_factory=list)

    @property
    def entry(self) -> PlannedBlock:
        return self.nodes[0]

    @property
    def exit(self) -> PlannedBlock:
        return self.nodes[-1]


def is_transform_block(block: Block) -> bool:
    return block.type is not None and block.type.startswith(TRANSFORM_TYPE_PREFIX)


def new_relation_name() -> str:
    return "rel_" + uuid.uuid4().hex[:10]


def parse_number(value: Optional[str]):
    """int, or float when the text contains a '.', 0 when unparseable."""
    if value is None:
        return 0
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return 0


def coerce_to_default_kind(default: Any, value: Optional[str]) -> Any:
    if value is None:
        return None
    # bool is an int subclass
    if isinstance(default, bool):
        return value.lower() == "true"
    if isinstance(default, (int, float)):
        return parse_number(value)
    return value


class BlockGraphTranslator:

    def __init__(self, block_type_mapping: Optional[BlockTypeMapping] = None,
                 block_catalog: Optional[BlockCatalog] = None):
        self.block_type_mapping = block_type_mapping or BlockTypeMapping()
        self.block_catalog = block_catalog or BlockCatalog()
        self.logger = logging.getLogger(__name__)

    def is_transform_flow(self, detail: Optional[DataflowDetail]) -> bool:
        """True when exactly one legacy block has a transform_to_* type."""
        return self.find_transform_block(detail) is not None

    @staticmethod
    def find_transform_block(detail: Optional[DataflowDetail]) -> Optional[Block]:
        if detail is None:
            return None
        transform_blocks = [b for b in detail.blocks if is_transform_block(b)]
        if len(transform_blocks) != 1:
            return None
        return transform_blocks[0]

    def build_neo_blocks(self, detail: DataflowDetail,
                         transform_context: Optional[TransformContext] = None) -> List[NeoBlock]:
        """
        Translate the legacy blocks into new blocks with config, variable
        bindings, positions and relations.

        Args:
            detail: Legacy dataflow (not modified)
            transform_context: Overlay for the csv/jslt/jolt blocks of a transform flow

        Returns:
            New blocks in final order
        """
        planned = self._flatten(self.plan_chains(detail))

        neo_blocks = []
        for index, (planned_block, successor) in enumerate(planned):
            config = self.block_catalog.get_config_defaults(planned_block.new_type)
            fields = planned_block.legacy_block.fields
            if planned_block.transform_part is not None and transform_context is not None:
                self._fill_config_from_transform_context(config, planned_block.transform_part, transform_context)
            else:
                self._fill_config_from_fields(config, fields)

            relations = []
            if successor is not None:
                relations.append(BlockRelation(
                    name=new_relation_name(),
                    to=successor.name,
                    expression=SUCCESS_EXPRESSION
                ))

            neo_blocks.append(NeoBlock(
                name=planned_block.name,
                type=planned_block.new_type,
                source=planned_block.source,
                config=config,
                variable_config_key_map=self.build_variable_config_key_map(config, fields),
                position=BlockPosition(x=app_config.BLOCK_POSITION_STEP_X * index, y=0),
                relations=relations
            ))
        self.logger.info(f"Built {len(neo_blocks)} neo block(s) for dataflow {detail.name}")
        return neo_blocks

    def plan_chains(self, detail: DataflowDetail) -> List[BlockChain]:
        """One chain per legacy block, stably sorted by entry order."""
        transform_block = self.find_transform_block(detail)
        transform_order = transform_block.order if transform_block is not None else None
        transform_count = sum(1 for b in detail.blocks if is_transform_block(b))
        if transform_count > 1:
            self.logger.warning(
                f"Dataflow {detail.name} has {transform_count} transform blocks; "
                f"migrating it as a non-transform flow"
            )

        chains = []
        for block in detail.blocks:
            if block is transform_block:
                chains.append(self._expand_transform_block(block))
                continue
            order = block.order
            if transform_order is not None and order > transform_order:
                order += 2
            chains.append(BlockChain(nodes=[PlannedBlock(
                name=block.name,
                new_type=self.block_type_mapping.map_type(block.type),
                order=order,
                source=block.source,
                legacy_block=block
            )]))
        return sorted(chains, key=lambda c: c.entry.order)

    def _expand_transform_block(self, block: Block) -> BlockChain:
        nodes = []
        for part, suffix, new_type, offset in TRANSFORM_EXPANSION:
            nodes.append(PlannedBlock(
                name=block.name + suffix,
                new_type=self.block_type_mapping.map_type(new_type),
                order=block.order + offset,
                # only the first block of the chain can be a source
                source=block.source if part == CSV_PART else False,
                legacy_block=block,
                transform_part=part
            ))
        return BlockChain(nodes=nodes)

    @staticmethod
    def _flatten(chains: List[BlockChain]):
        """(block, successor) pairs: inside a chain node -> next node, across chains exit -> next entry."""
        pairs = []
        for chain_index, chain in enumerate(chains):
            next_entry = chains[chain_index + 1].entry if chain_index + 1 < len(chains) else None
            for node_index, node in enumerate(chain.nodes):
                if node_index + 1 < len(chain.nodes):
                    pairs.append((node, chain.nodes[node_index + 1]))
                else:
                    pairs.append((node, next_entry))
        return pairs

    @staticmethod
    def _fill_config_from_fields(config: Dict[str, Any], fields: Iterable):
        by_key = {}
        by_name = {}
        for f in fields or []:
            if f.value is None:
                continue
            if f.key is not None:
                by_key[f.key.lower()] = f.value
            if f.name is not None:
                by_name[f.name.lower()] = f.value
        for config_key in list(config.keys()):
            value = by_key.get(config_key.lower())
            if value is None:
                value = by_name.get(config_key.lower())
            if value is not None:
                config[config_key] = coerce_to_default_kind(config[config_key], value)

    @staticmethod
    def _fill_config_from_transform_context(config: Dict[str, Any], part: str, ctx: TransformContext):
        def put(key, value):
            if value is not None and key in config:
                config[key] = value

        if part == CSV_PART:
            put("groupBy", ctx.record_group_by_source)
            if ctx.group_size is not None:
                put("groupSize", parse_number(ctx.group_size))
            put("sortHeaders", ctx.sort_headers)
            if ctx.alphabetical_sort is not None:
                put("alphabeticalSort", ctx.alphabetical_sort.lower() == "true")
            put("attribution_type", ctx.attribution_type)
            put("attribution_code", ctx.attribution_code)
            put("header_value", ctx.header_value)
            put("child_till_code", ctx.child_till_code)
            put("child_org_id", ctx.child_org_id)
            put("lineNos", ctx.line_no)
        elif part == JSLT_PART:
            put("transformation", ctx.jslt_script)
        elif part == JOLT_PART:
            put("joltTransformation", ctx.jolt_spec)

    @staticmethod
    def build_variable_config_key_map(config: Dict[str, Any], fields: Iterable) -> Dict[str, str]:
        """config key -> variable key for fields whose value looks like <varKey>___<literal>."""
        var_map = OrderedDict()
        for f in fields or []:
            if f.value is None or VARIABLE_MARKER not in f.value:
                continue
            var_key = f.value.split(VARIABLE_MARKER, 1)[0]
            for config_key in config.keys():
                key_match = f.key is not None and config_key.lower() == f.key.lower()
                name_match = f.name is not None and config_key.lower() == f.name.lower()
                if key_match or name_match:
                    var_map[config_key] = var_key
                    break
        return var_map

    @staticmethod
    def get_schedule_cron(detail: DataflowDetail) -> str:
        schedule = detail.schedule
        if schedule is not None:
            if schedule.cron and schedule.cron.strip():
                return schedule.cron
            if schedule.schedule_expression and schedule.schedule_expression.strip():
                return schedule.schedule_expression
        return app_config.FALLBACK_SCHEDULE_CRON

    @staticmethod
    def find_old_block_for_processor(blocks: List[Block], processor_name: Optional[str]) -> Optional[Block]:
        """Legacy block owning a processor: exact name, else the longest name N with processor = N_..."""
        if not processor_name or not blocks:
            return None
        processor_lower = processor_name.lower()
        by_name_length = sorted(
            (b for b in blocks if b.name),
            key=lambda b: len(b.name),
            reverse=True
        )
        for exact_pass in (True, False):
            for block in by_name_length:
                name_lower = block.name.lower()
                if exact_pass and processor_lower == name_lower:
                    return block
                if not exact_pass and processor_lower.startswith(name_lower + "_"):
                    return block
        return None

    def plan_concurrency_updates(
        self,
        legacy_blocks: List[Block],
        neo_blocks: List[NeoBlock],
        processors: List[ProcessorConcurrencyInfo],
        neo_dataflow_id: Optional[str] = None,
        neo_version_id: Optional[str] = None
    ) -> List[ProcessorConcurrencyRequest]:
        """
        Map discovered processor concurrencies onto the same-named new blocks.
        Processors that resolve to no legacy block or no new block are skipped.
        """
        neo_by_name = {}
        for neo_block in neo_blocks:
            neo_by_name.setdefault(neo_block.name, neo_block)

        requests = []
        for info in processors:
            old_block = self.find_old_block_for_processor(legacy_blocks, info.processor_name)
            if old_block is None:
                self.logger.warning(
                    f"Could not resolve old block for processor {info.processor_name} "
                    f"({info.processor_class}); skipping concurrency update"
                )
                continue
            neo_block = neo_by_name.get(old_block.name)
            if neo_block is None:
                self.logger.warning(
                    f"No new block with name {old_block.name} for processor {info.processor_name}; "
                    f"skipping concurrency update"
                )
                continue
            processor_type = INVOKE_HTTP_V2_CLASS if info.processor_class == INVOKE_HTTP_CLASS else info.processor_class
            requests.append(ProcessorConcurrencyRequest(
                block_type=neo_block.type,
                block_name=neo_block.name,
                processor_type=processor_type,
                concurrently_schedulable_task_count=info.current_concurrency,
                neo_dataflow_id=neo_dataflow_id,
                neo_version_id=neo_version_id
            ))
        return requests
