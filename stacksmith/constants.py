"""
Stacksmith Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Configuration
DEFAULT_CONFIG_FILE = "stacksmith.yaml"
FILE_URI_SCHEME = "file://"

# Parameter resolver kinds
RESOLVER_STACK_OUTPUT = "stack-output"
RESOLVER_LITERAL = "literal"
RESOLVER_LIST = "list"

# Deployment defaults
DEFAULT_CAPABILITIES = ["CAPABILITY_IAM"]
CHANGESET_NAME_PREFIX = "stacksmith"

# Polling and timeouts (seconds)
CHANGESET_POLL_INTERVAL = 2
CHANGESET_TIMEOUT = 300
STACK_POLL_INTERVAL = 5
STACK_OPERATION_TIMEOUT = 3600

# CloudFormation stack statuses
TERMINAL_STACK_STATUSES = frozenset(
    {
        "CREATE_COMPLETE",
        "CREATE_FAILED",
        "UPDATE_COMPLETE",
        "UPDATE_FAILED",
        "UPDATE_ROLLBACK_COMPLETE",
        "UPDATE_ROLLBACK_FAILED",
        "DELETE_COMPLETE",
        "DELETE_FAILED",
        "ROLLBACK_COMPLETE",
        "ROLLBACK_FAILED",
        "IMPORT_COMPLETE",
        "IMPORT_ROLLBACK_COMPLETE",
        "IMPORT_ROLLBACK_FAILED",
    }
)

SUCCESS_STACK_STATUSES = frozenset(
    {
        "CREATE_COMPLETE",
        "UPDATE_COMPLETE",
        "DELETE_COMPLETE",
        "IMPORT_COMPLETE",
    }
)

# Changeset failure reasons that mean "nothing to do"
NO_CHANGES_MARKERS = (
    "didn't contain changes",
    "didn't include changes",
    "no updates are to be performed",
)

# Log Configuration
LOG_DIR_NAME = ".stacksmith/logs"
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"
EVENT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
