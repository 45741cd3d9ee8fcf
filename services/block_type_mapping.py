import json
import logging
from typing import Dict, Optional

import config as app_config


class BlockTypeMapping:
    """Legacy block type -> new block type. Types without an entry map to themselves."""

    def __init__(self, mapping: Optional[Dict[str, str]] = None, path: Optional[str] = None):
        self.logger = logging.getLogger(__name__)
        if mapping is not None:
            self._mapping = dict(mapping)
        else:
            self._mapping = self._load(path or app_config.BLOCK_TYPE_MAPPING_PATH)

    def _load(self, path: str) -> Dict[str, str]:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to load block type mapping from {path}: {str(e)}")
            return {}
        self.logger.info(f"Loaded {len(data)} block type mappings from {path}")
        return {str(k): str(v) for k, v in data.items()}

    def map_type(self, legacy_type: Optional[str]) -> Optional[str]:
        if legacy_type is None:
            return None
        return self._mapping.get(legacy_type, legacy_type)

    def __len__(self):
        return len(self._mapping)
