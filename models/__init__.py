from .dataflow import Block, DataflowDetail, DataflowSummary, Field, Schedule, Workspace
from .neo_block import BlockRelation, NeoBlock, ProcessorConcurrencyRequest, VersionUpdateRequest
from .transform_flow import TransformContext, TransformFlowProperties
from .migration_run import MigrationRun

__all__ = [
    'Block', 'DataflowDetail', 'DataflowSummary', 'Field', 'Schedule', 'Workspace',
    'BlockRelation', 'NeoBlock', 'ProcessorConcurrencyRequest', 'VersionUpdateRequest',
    'TransformContext', 'TransformFlowProperties', 'MigrationRun'
]
