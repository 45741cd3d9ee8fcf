"""
Provides the parsed flow.xml of the legacy NiFi cluster.

The document is read from a local copy (FLOW_XML_PATH, or the cache directory);
when no local copy exists it is downloaded once from a Unity Catalog volume and
cached. The parsed tree is memoised for the lifetime of the provider.
"""

import gzip
import logging
import os
from typing import Optional

from lxml import etree

import config as app_config
from services.nifi_parser import NiFiParser
from utils.databricks_client import DatabricksClientWrapper


class FlowXmlLoadError(Exception):
    """Raised when flow.xml cannot be obtained or parsed."""


class FlowXmlProvider:
    """Loads and caches the legacy flow.xml tree."""

    def __init__(
        self,
        local_path: Optional[str] = None,
        volume_path: Optional[str] = None,
        cache_dir: Optional[str] = None,
        databricks_client: Optional[DatabricksClientWrapper] = None
    ):
        self.local_path = local_path if local_path is not None else app_config.FLOW_XML_PATH
        self.volume_path = volume_path if volume_path is not None else app_config.FLOW_XML_VOLUME_PATH
        self.cache_dir = cache_dir or app_config.FLOW_XML_CACHE_DIR
        self._databricks_client = databricks_client
        self._root = None
        self.logger = logging.getLogger(__name__)

    def get_flow_tree(self) -> etree._Element:
        """
        Get the root element of flow.xml.

        Raises:
            FlowXmlLoadError: If no copy can be read or the document does not parse
        """
        if self._root is not None:
            return self._root
        try:
            content = self._read_bytes()
            if content[:2] == b'\x1f\x8b':
                content = gzip.decompress(content)
            root = NiFiParser.parse_flow_xml(content)
        except FlowXmlLoadError:
            raise
        except (OSError, etree.XMLSyntaxError) as e:
            raise FlowXmlLoadError(f"Unable to load flow.xml: {str(e)}") from e

        if root.tag != 'flowController':
            self.logger.warning(f"Unexpected flow.xml root element <{root.tag}>")
        self._root = root
        return root

    def reset(self):
        """Drop the memoised tree so the next call re-reads the document."""
        self._root = None

    def _read_bytes(self) -> bytes:
        if self.local_path:
            self.logger.info(f"Reading flow.xml from {self.local_path}")
            with open(self.local_path, 'rb') as f:
                return f.read()

        cached = os.path.join(self.cache_dir, "flow.xml")
        if os.path.exists(cached) and os.path.getsize(cached) > 0:
            with open(cached, 'rb') as f:
                return f.read()

        if not self.volume_path:
            raise FlowXmlLoadError("Unable to load flow.xml: no local path or volume path configured")

        self.logger.info(f"Downloading flow.xml from volume {self.volume_path}")
        try:
            content = self._get_databricks_client().read_file(self.volume_path)
        except Exception as e:
            raise FlowXmlLoadError(f"Unable to load flow.xml: {str(e)}") from e

        os.makedirs(self.cache_dir, exist_ok=True)
        with open(cached, 'wb') as f:
            f.write(content)
        return content

    def _get_databricks_client(self) -> DatabricksClientWrapper:
        if self._databricks_client is None:
            self._databricks_client = DatabricksClientWrapper()
        return self._databricks_client
