"""
Default config catalog for new block types.

Loaded from a rules-metas JSON document: a list of
{"id": <block type>, "config": {"properties": {<key>: {"type": ..., "default": ...}}}}.
The runtime kind of each default (bool, number, text) decides how legacy field
values are coerced when overlaid.
"""

import json
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

import config as app_config


class BlockCatalog:

    def __init__(self, path: Optional[str] = None, metas: Optional[List[dict]] = None):
        self.logger = logging.getLogger(__name__)
        if metas is None:
            metas = self._read(path or app_config.RULES_METAS_PATH)
        self._defaults = self._index(metas)

    def _read(self, path: str) -> List[dict]:
        try:
            with open(path, 'r') as f:
                metas = json.load(f, object_pairs_hook=OrderedDict)
        except (OSError, ValueError) as e:
            self.logger.error(f"[BlockCatalog] Failed to load {path}: {str(e)}")
            return []
        self.logger.info(f"[BlockCatalog] Loaded {len(metas)} block types from {path}")
        return metas

    @staticmethod
    def _index(metas: List[dict]) -> "OrderedDict[str, OrderedDict[str, Any]]":
        index = OrderedDict()
        for meta in metas or []:
            block_type = meta.get('id')
            if block_type is None:
                continue
            properties = (meta.get('config') or {}).get('properties') or {}
            index[block_type] = OrderedDict(
                (key, (schema or {}).get('default')) for key, schema in properties.items()
            )
        return index

    def get_config_defaults(self, block_type: Optional[str]) -> "OrderedDict[str, Any]":
        """Copy of the ordered config defaults for block_type; empty when unknown."""
        defaults = self._defaults.get(block_type)
        if defaults is None:
            return OrderedDict()
        return OrderedDict(defaults)

    def has_block_type(self, block_type: Optional[str]) -> bool:
        return block_type in self._defaults

    def block_type_ids(self) -> List[str]:
        return list(self._defaults.keys())
