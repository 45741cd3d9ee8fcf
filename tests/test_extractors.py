"""
Tests for the flow.xml concurrency and transform property extractors.
"""

import pytest

from services.concurrency_extractor import FlowXmlConcurrencyExtractor, parse_concurrency
from services.flow_xml_provider import FlowXmlProvider
from services.transform_properties_extractor import FlowXmlTransformPropertiesExtractor
from tests.conftest import HEADER_MAPPING, PLAIN_DATAFLOW_UUID, TRANSFORM_DATAFLOW_UUID


class TestConcurrencyExtractor:
    """Tests for FlowXmlConcurrencyExtractor."""

    def test_non_unit_and_http_processors(self, flow_xml_provider):
        """maxConcurrentTasks != 1 plus allow-listed HTTP processors at 1."""
        infos = FlowXmlConcurrencyExtractor(flow_xml_provider).get_processors_with_concurrency_not_one(
            PLAIN_DATAFLOW_UUID
        )
        by_name = {i.processor_name: i for i in infos}
        assert set(by_name) == {"sink_7", "sink_http_3", "unknown-block_2"}
        assert by_name["sink_7"].current_concurrency == 4
        assert by_name["sink_http_3"].current_concurrency == 1
        assert by_name["sink_http_3"].processor_class == "org.apache.nifi.processors.standard.InvokeHTTP"

    def test_non_http_processor_at_one_excluded(self, flow_xml_provider):
        infos = FlowXmlConcurrencyExtractor(flow_xml_provider).get_processors_with_concurrency_not_one(
            PLAIN_DATAFLOW_UUID
        )
        names = [i.processor_name for i in infos]
        assert "source_12" not in names
        assert "orphan_1" not in names

    def test_missing_group_yields_nothing(self, flow_xml_provider):
        extractor = FlowXmlConcurrencyExtractor(flow_xml_provider)
        assert extractor.get_processors_with_concurrency_not_one("missing") == []

    def test_parse_concurrency(self):
        assert parse_concurrency(" 3 ") == 3
        assert parse_concurrency("") == 1
        assert parse_concurrency(None) == 1
        assert parse_concurrency("x") == 1


class TestTransformPropertiesExtractor:
    """Tests for FlowXmlTransformPropertiesExtractor."""

    def test_harvests_transform_block_processors(self, flow_xml_provider):
        props = FlowXmlTransformPropertiesExtractor(flow_xml_provider).extract(
            TRANSFORM_DATAFLOW_UUID, "Transform-data"
        )
        assert props.header_mapping_json == HEADER_MAPPING
        assert props.date_column_output_key == "txnDate"
        assert props.existing_date_format == "dd/MM/yyyy"
        assert props.new_date_format == "yyyy-MM-dd"
        assert props.record_group_by == "billNumber,type"
        assert props.sort_headers == "billNumber"
        assert props.alphabetical_sort == "true"
        assert props.jolt_spec == '[{"operation":"shift","spec":{"*":{"a":"[&1].a"}}}]'
        assert props.line_no == "1,2"
        assert props.timezone_id is None

    def test_group_size_from_small_records_per_split(self, flow_xml_provider):
        """Without Minimum Group Record the smallest Records Per Split below 100 is used."""
        props = FlowXmlTransformPropertiesExtractor(flow_xml_provider).extract(
            TRANSFORM_DATAFLOW_UUID, "Transform-data"
        )
        assert props.group_size == "50"

    @pytest.mark.parametrize("values,expected", [
        (["80", "20"], "20"),
        (["20", "80"], "20"),
        (["-5", "x", "99", "100"], "99"),
        (["100", "250"], None),
    ])
    def test_group_size_is_smallest_records_per_split(self, tmp_path, values, expected):
        processors = "".join(
            f"<processor><name>split_{i}</name><property><name>Records Per Split</name>"
            f"<value>{value}</value></property></processor>"
            for i, value in enumerate(values)
        )
        path = tmp_path / "flow.xml"
        path.write_text(
            "<flowController><rootGroup><id>root</id>"
            f"<processGroup><id>df</id>{processors}</processGroup>"
            "</rootGroup></flowController>"
        )
        provider = FlowXmlProvider(local_path=str(path), cache_dir=str(tmp_path))
        assert FlowXmlTransformPropertiesExtractor(provider).extract("df").group_size == expected

    def test_minimum_group_record_wins_over_records_per_split(self, tmp_path):
        path = tmp_path / "flow.xml"
        path.write_text(
            "<flowController><rootGroup><id>root</id><processGroup><id>df</id>"
            "<processor><name>a_1</name>"
            "<property><name>Records Per Split</name><value>10</value></property>"
            "<property><name>Minimum Group Record</name><value>40</value></property>"
            "</processor></processGroup></rootGroup></flowController>"
        )
        provider = FlowXmlProvider(local_path=str(path), cache_dir=str(tmp_path))
        assert FlowXmlTransformPropertiesExtractor(provider).extract("df").group_size == "40"

    def test_attribution_alternative_names(self, flow_xml_provider):
        """Blank snake_case values fall back to the camelCase property."""
        props = FlowXmlTransformPropertiesExtractor(flow_xml_provider).extract(
            TRANSFORM_DATAFLOW_UUID, "Transform-data"
        )
        assert props.attribution_type == "TILL"
        assert props.header_value == "store"
        assert props.attribution_code is None

    def test_without_prefix_reads_every_processor(self, flow_xml_provider):
        props = FlowXmlTransformPropertiesExtractor(flow_xml_provider).extract(TRANSFORM_DATAFLOW_UUID)
        assert props.record_group_by == "ignored"

    def test_prefix_matching_nothing(self, flow_xml_provider):
        props = FlowXmlTransformPropertiesExtractor(flow_xml_provider).extract(
            TRANSFORM_DATAFLOW_UUID, "no-such-block"
        )
        assert props.is_empty()

    def test_missing_group_is_empty(self, flow_xml_provider):
        props = FlowXmlTransformPropertiesExtractor(flow_xml_provider).extract("missing")
        assert props.is_empty()
