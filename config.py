"""
Configuration settings for the NiFi dataflow migration app.
"""

import os

# Legacy (connect) and new dataflow system REST APIs
OLD_BASE_URL = os.getenv("NIFI_MIGRATION_OLD_BASE_URL", "")
NEW_BASE_URL = os.getenv("NIFI_MIGRATION_NEW_BASE_URL", "")
BASIC_AUTH_TOKEN = os.getenv("NIFI_MIGRATION_BASIC_AUTH", "")
SOURCE_HEADER = os.getenv("NIFI_MIGRATION_SOURCE_HEADER", "migration")

# Glue block definition lookup; {blockTypeId} is substituted per call
BLOCK_DEFINITION_URL = os.getenv("NIFI_MIGRATION_BLOCK_DEFINITION_URL", "")

# Neo rule (canvas) API
NEO_RULE_BASE_URL = os.getenv("NIFI_MIGRATION_NEO_RULE_BASE_URL", "")
NEO_RULE_APPLICATION_ID = os.getenv("NIFI_MIGRATION_NEO_RULE_APPLICATION_ID", "")
NEO_RULE_CONTEXT = os.getenv("NIFI_MIGRATION_NEO_RULE_CONTEXT", "connectplus")
NEO_RULE_COOKIE = os.getenv("NIFI_MIGRATION_NEO_RULE_COOKIE", "")
NEO_RULE_REMOTE_USER = os.getenv("NIFI_MIGRATION_NEO_RULE_REMOTE_USER", "")

# flow.xml export of the legacy NiFi cluster
FLOW_XML_PATH = os.getenv("NIFI_MIGRATION_FLOW_XML_PATH", "")
FLOW_XML_VOLUME_PATH = os.getenv("NIFI_MIGRATION_FLOW_XML_VOLUME_PATH", "")
FLOW_XML_CACHE_DIR = os.getenv("NIFI_MIGRATION_FLOW_XML_CACHE_DIR", "/tmp/nifi-flow-cache")

# nifi.sensitive.props.key of the legacy cluster, used to decrypt enc{...} values
SENSITIVE_PROPS_KEY = os.getenv("NIFI_MIGRATION_SENSITIVE_KEY", "")

# Result logs
LOG_DIR = os.getenv("NIFI_MIGRATION_LOG_DIR", "/tmp/nifi-migration-logs")

# Static resources (block type table, default config catalog)
DATA_DIR = os.getenv(
    "NIFI_MIGRATION_DATA_DIR",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")
)
BLOCK_TYPE_MAPPING_PATH = os.path.join(DATA_DIR, "legacy_to_new_block_types.json")
RULES_METAS_PATH = os.path.join(DATA_DIR, "rules_metas.json")

# HTTP timeout (in seconds)
HTTP_TIMEOUT_SECONDS = int(os.getenv("NIFI_MIGRATION_HTTP_TIMEOUT", "60"))

# Translation defaults
FALLBACK_SCHEDULE_CRON = "0 0/5 * * * ?"    # every 5 minutes
MIGRATION_TAG = "migration"
BLOCK_POSITION_STEP_X = 320
MAX_LISTED_RUNS = 50
