"""
Global constants for the MBR CLI.
"""

APP_NAME = "mbr-cli"

# Profile defaults
DEFAULT_PROFILE = "default"
DEFAULT_URL = "http://localhost:3000"

# Environment variables consumed by the config resolver
ENV_URL = "MBR_URL"
ENV_API_KEY = "MBR_API_KEY"
ENV_TIMEOUT = "MBR_TIMEOUT"
ENV_CONFIG_DIR = "MBR_CONFIG_DIR"
ENV_USERNAME = "MBR_USERNAME"
ENV_PASSWORD = "MBR_PASSWORD"

# Config file
CONFIG_FILE_NAME = "config.toml"

# Keyring service for session tokens
KEYRING_SERVICE = "mbr-cli"

# HTTP
DEFAULT_TIMEOUT = 30.0  # seconds
QUERY_TIMEOUT = 60.0  # question execution runs longer
API_KEY_HEADER = "x-api-key"
SESSION_HEADER = "X-Metabase-Session"
DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

# Display
DEFAULT_LIST_LIMIT = 20
DEFAULT_PAGE_SIZE = 20
PAGE_HEADER_LINES = 5  # title + table borders + header row
PAGE_FOOTER_LINES = 3  # bottom border + status line + key hints

# Exit codes
EXIT_OK = 0
EXIT_CONFIG_ERROR = 3
EXIT_AUTH_ERROR = 4
EXIT_API_ERROR = 5
EXIT_VALIDATION_ERROR = 6

# Logging constants
LOG_FILE_NAME = "mbr"
LOG_RETENTION_DAYS = 7

# Sensitive data keys for sanitization
SENSITIVE_KEYS = (
    "password", "token", "api_key", "x-api-key", "x-metabase-session",
    "session", "secret", "authorization", "cookie",
)
