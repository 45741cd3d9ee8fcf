"""
Tests for the block type mapping table and the config defaults catalog.
"""

import json

from services.block_catalog import BlockCatalog
from services.block_type_mapping import BlockTypeMapping


class TestBlockTypeMapping:

    def test_known_and_unknown_types(self):
        mapping = BlockTypeMapping(mapping={"sftp_pull": "sftp_read"})
        assert mapping.map_type("sftp_pull") == "sftp_read"
        assert mapping.map_type("something_new") == "something_new"
        assert mapping.map_type(None) is None

    def test_bundled_table(self):
        mapping = BlockTypeMapping()
        assert len(mapping) > 0
        assert mapping.map_type("s3_push") == "s3_write"
        assert mapping.map_type("sftp_pull") == "sftp_read"

    def test_unreadable_file_maps_identity(self, tmp_path):
        path = tmp_path / "mapping.json"
        path.write_text("{ not json")
        mapping = BlockTypeMapping(path=str(path))
        assert len(mapping) == 0
        assert mapping.map_type("s3_push") == "s3_push"


class TestBlockCatalog:

    def test_defaults_are_ordered_copies(self, block_catalog):
        defaults = block_catalog.get_config_defaults("sftp_read")
        assert list(defaults) == ["hostname", "port", "password", "deleteOriginal"]
        defaults["hostname"] = "changed"
        assert block_catalog.get_config_defaults("sftp_read")["hostname"] == ""

    def test_unknown_type(self, block_catalog):
        assert block_catalog.get_config_defaults("nope") == {}
        assert block_catalog.get_config_defaults(None) == {}
        assert not block_catalog.has_block_type("nope")

    def test_bundled_catalog_covers_transform_parts(self):
        catalog = BlockCatalog()
        for block_type in ("convert_csv_to_json", "jslt_transform", "jolt_transform", "sftp_read", "s3_write"):
            assert catalog.has_block_type(block_type)
        assert catalog.get_config_defaults("jslt_transform")["transformation"] == "."

    def test_bundled_mapping_targets_exist_in_catalog_where_migrated(self):
        catalog = BlockCatalog()
        mapping = BlockTypeMapping()
        assert catalog.has_block_type(mapping.map_type("s3_push"))

    def test_load_from_path(self, tmp_path):
        path = tmp_path / "metas.json"
        path.write_text(json.dumps([
            {"id": "a", "config": {"properties": {"z": {"default": 1}, "y": {"default": "x"}}}},
            {"config": {}},
            {"id": "b"},
        ]))
        catalog = BlockCatalog(path=str(path))
        assert catalog.block_type_ids() == ["a", "b"]
        assert list(catalog.get_config_defaults("a").items()) == [("z", 1), ("y", "x")]
        assert catalog.get_config_defaults("b") == {}

    def test_missing_file_is_empty(self, tmp_path):
        assert BlockCatalog(path=str(tmp_path / "missing.json")).block_type_ids() == []
