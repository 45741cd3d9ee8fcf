"""
Pytest fixtures for the NiFi dataflow migration tests.

Provides shared fixtures for:
- A small flow.xml export with a plain dataflow and a transform dataflow
- Flow XML providers reading that export
- Legacy dataflow builders
"""

import sys
from pathlib import Path

import pytest

# Flat layout: make the project root importable when running from a checkout
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from models.dataflow import Block, DataflowDetail, Field, Schedule  # noqa: E402
from services.block_catalog import BlockCatalog  # noqa: E402
from services.block_type_mapping import BlockTypeMapping  # noqa: E402
from services.flow_xml_provider import FlowXmlProvider  # noqa: E402

PLAIN_DATAFLOW_UUID = "7f3c1a52-0000-4000-8000-000000000001"
TRANSFORM_DATAFLOW_UUID = "7f3c1a52-0000-4000-8000-000000000002"

HEADER_MAPPING = (
    '{"billNumber": "bill_no", "type": "const{SALE}", '
    '"txnDate": "txn_date", "store": "exp{hdr{store code} + \'-\' + \'X\'}"}'
)

FLOW_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<flowController encoding-version="1.4">
  <maxTimerDrivenThreadCount>10</maxTimerDrivenThreadCount>
  <rootGroup>
    <id>root-group</id>
    <name>NiFi Flow</name>
    <processGroup>
      <id>workspace-group</id>
      <name>W</name>
      <processGroup>
        <id>{PLAIN_DATAFLOW_UUID}</id>
        <name>D</name>
        <processor>
          <id>p-1</id>
          <name>source_12</name>
          <class>org.apache.nifi.processors.standard.ListSFTP</class>
          <maxConcurrentTasks>1</maxConcurrentTasks>
          <property>
            <name>Hostname</name>
            <value>sftp.example.com</value>
          </property>
          <property>
            <name>Password</name>
            <value>s3cr3t</value>
          </property>
        </processor>
        <processor>
          <id>p-2</id>
          <name>sink_7</name>
          <class>org.apache.nifi.processors.aws.s3.PutS3Object</class>
          <maxConcurrentTasks>4</maxConcurrentTasks>
          <property>
            <name>Secret Key</name>
            <value>enc{{abcdef}}</value>
          </property>
        </processor>
        <processor>
          <id>p-3</id>
          <name>sink_http_3</name>
          <class>org.apache.nifi.processors.standard.InvokeHTTP</class>
          <maxConcurrentTasks>1</maxConcurrentTasks>
        </processor>
        <processor>
          <id>p-4</id>
          <name>orphan_1</name>
          <class>org.apache.nifi.processors.standard.LogAttribute</class>
          <maxConcurrentTasks>not-a-number</maxConcurrentTasks>
        </processor>
        <processor>
          <id>p-5</id>
          <name>unknown-block_2</name>
          <class>org.apache.nifi.processors.standard.UpdateAttribute</class>
          <maxConcurrentTasks>2</maxConcurrentTasks>
        </processor>
      </processGroup>
      <processGroup>
        <id>{TRANSFORM_DATAFLOW_UUID}</id>
        <name>T</name>
        <processor>
          <name>Transform-data_1</name>
          <class>com.capillary.foundation.processors.HeaderProcessor</class>
          <maxConcurrentTasks>1</maxConcurrentTasks>
          <property>
            <name>Rename Headers Mapping</name>
            <value>{HEADER_MAPPING}</value>
          </property>
          <property>
            <name>Date Column Header</name>
            <value>txnDate</value>
          </property>
          <property>
            <name>Existing Date Format</name>
            <value>dd/MM/yyyy</value>
          </property>
          <property>
            <name>New Date Format</name>
            <value> yyyy-MM-dd </value>
          </property>
        </processor>
        <processor>
          <name>Transform-data_2</name>
          <class>com.capillary.foundation.processors.GroupByWithLimit</class>
          <maxConcurrentTasks>1</maxConcurrentTasks>
          <property>
            <name>Record Group By</name>
            <value>billNumber,type</value>
          </property>
          <property>
            <name>Records Per Split</name>
            <value>500</value>
          </property>
        </processor>
        <processor>
          <name>Transform-data_3</name>
          <class>org.apache.nifi.processors.standard.SplitRecord</class>
          <maxConcurrentTasks>1</maxConcurrentTasks>
          <property>
            <name>Records Per Split</name>
            <value>50</value>
          </property>
          <property>
            <name>Sort Headers</name>
            <value>billNumber</value>
          </property>
          <property>
            <name>Use Alphabetical Sort</name>
            <value>true</value>
          </property>
        </processor>
        <processor>
          <name>Transform-data_4</name>
          <class>org.apache.nifi.processors.standard.JoltTransformJSON</class>
          <maxConcurrentTasks>1</maxConcurrentTasks>
          <property>
            <name>jolt-spec</name>
            <value>[{{"operation":"shift","spec":{{"*":{{"a":"[&amp;1].a"}}}}}}]</value>
          </property>
        </processor>
        <processor>
          <name>Transform-data_5</name>
          <class>org.apache.nifi.processors.standard.EvaluateJsonPath</class>
          <maxConcurrentTasks>1</maxConcurrentTasks>
          <property>
            <name>attribution_type</name>
            <value>   </value>
          </property>
          <property>
            <name>attributionType</name>
            <value>TILL</value>
          </property>
          <property>
            <name>headerValue</name>
            <value>store</value>
          </property>
          <property>
            <name>lineNos</name>
            <value>1,2</value>
          </property>
        </processor>
        <processor>
          <name>other-block_1</name>
          <class>com.capillary.foundation.processors.GroupByWithLimit</class>
          <maxConcurrentTasks>1</maxConcurrentTasks>
          <property>
            <name>Record Group By</name>
            <value>ignored</value>
          </property>
        </processor>
      </processGroup>
    </processGroup>
  </rootGroup>
</flowController>
"""


@pytest.fixture
def flow_xml_bytes():
    return FLOW_XML.encode("utf-8")


@pytest.fixture
def flow_xml_path(tmp_path, flow_xml_bytes):
    path = tmp_path / "flow.xml"
    path.write_bytes(flow_xml_bytes)
    return str(path)


@pytest.fixture
def flow_xml_provider(flow_xml_path, tmp_path):
    return FlowXmlProvider(local_path=flow_xml_path, cache_dir=str(tmp_path / "cache"))


@pytest.fixture
def block_type_mapping():
    return BlockTypeMapping(mapping={"sftp_pull": "sftp_read", "s3_push": "s3_write"})


@pytest.fixture
def block_catalog():
    return BlockCatalog(metas=[
        {"id": "sftp_read", "config": {"properties": {
            "hostname": {"type": "string", "default": ""},
            "port": {"type": "number", "default": 22},
            "password": {"type": "string", "default": ""},
            "deleteOriginal": {"type": "boolean", "default": False},
        }}},
        {"id": "s3_write", "config": {"properties": {
            "bucket": {"type": "string", "default": ""},
            "multipartThreshold": {"type": "number", "default": 5.0},
        }}},
        {"id": "convert_csv_to_json", "config": {"properties": {
            "groupBy": {"type": "string", "default": ""},
            "groupSize": {"type": "number", "default": 1},
            "sortHeaders": {"type": "string", "default": ""},
            "alphabeticalSort": {"type": "boolean", "default": False},
            "attribution_type": {"type": "string", "default": ""},
            "header_value": {"type": "string", "default": ""},
            "lineNos": {"type": "string", "default": ""},
        }}},
        {"id": "jslt_transform", "config": {"properties": {
            "transformation": {"type": "string", "default": "."},
        }}},
        {"id": "jolt_transform", "config": {"properties": {
            "joltTransformation": {"type": "string", "default": "[]"},
        }}},
    ])


@pytest.fixture
def plain_dataflow():
    """Two-block legacy dataflow: sftp source -> s3 sink."""
    return DataflowDetail(
        name="D",
        uuid=PLAIN_DATAFLOW_UUID,
        blocks=[
            Block(name="source", type="sftp_pull", order=0, block_type_id=1, source=True, fields=[
                Field(key="hostname", name="Hostname", value="sftp.example.com"),
                Field(key="port", name="Port", value="2222"),
                Field(key="password", name="Password", value="********"),
            ]),
            Block(name="sink", type="s3_push", order=1, block_type_id=2, fields=[
                Field(key="bucket", name="Bucket", value="bucketVar___my-bucket"),
            ]),
        ],
        schedule=Schedule(cron="0 0 * * * ?")
    )


@pytest.fixture
def transform_dataflow():
    """Legacy dataflow with a transform_to_* block between a source and a sink."""
    return DataflowDetail(
        name="T",
        uuid=TRANSFORM_DATAFLOW_UUID,
        blocks=[
            Block(name="source", type="sftp_pull", order=1, block_type_id=1, source=True),
            Block(name="Transform-data", type="transform_to_json", order=2, block_type_id=5),
            Block(name="sink", type="s3_push", order=3, block_type_id=2),
        ]
    )
