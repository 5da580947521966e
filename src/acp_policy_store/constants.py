"""Application-wide constants for acp-policy-store.

Constants that define application behavior.
For user-configurable settings per deployment, see config.py.
"""

import os

from platformdirs import user_data_dir

APP_NAME: str = "acp-policy-store"

# ============================================================================
# Template Compilation
# ============================================================================

# Default delimiters around the regular-expression part of a template,
# e.g. "users:<[0-9]+>:profile"
DEFAULT_START_DELIMITER: str = "<"
DEFAULT_END_DELIMITER: str = ">"

# Number of compiled templates memoised by the compiler
TEMPLATE_CACHE_SIZE: int = 1024

# ============================================================================
# Policy Effects
# ============================================================================

EFFECT_ALLOW: str = "allow"
EFFECT_DENY: str = "deny"
VALID_EFFECTS: tuple[str, ...] = (EFFECT_ALLOW, EFFECT_DENY)

# ============================================================================
# Persisted Layout
# ============================================================================

POLICY_TABLE: str = "acp_policy"
SUBJECT_TABLE: str = "acp_policy_subject"
PERMISSION_TABLE: str = "acp_policy_permission"
RESOURCE_TABLE: str = "acp_policy_resource"

# Link tables are formatted into SQL, so only these names are accepted
LINK_TABLES: frozenset[str] = frozenset({SUBJECT_TABLE, PERMISSION_TABLE, RESOURCE_TABLE})

# Persisted form of a policy without conditions (never NULL)
EMPTY_CONDITIONS: str = "[]"

# ============================================================================
# Database Connection
# ============================================================================

# Default location of the SQLite database
# - macOS: ~/Library/Application Support/acp-policy-store/policies.db
# - Linux: ~/.local/share/acp-policy-store/policies.db
DEFAULT_DB_PATH: str = os.path.join(user_data_dir(APP_NAME), "policies.db")

# How long a connection waits on a locked database (seconds)
DEFAULT_DB_TIMEOUT_SECONDS: float = 5.0
MIN_DB_TIMEOUT_SECONDS: float = 0.1
MAX_DB_TIMEOUT_SECONDS: float = 300.0  # 5 minutes

# ============================================================================
# Files and Logs
# ============================================================================

CONFIG_FILE_NAME: str = "acp_policy_store_config.json"
LOGS_DIR_NAME: str = "acp_policy_store_logs"
SYSTEM_LOG_FILE_NAME: str = "system.jsonl"
