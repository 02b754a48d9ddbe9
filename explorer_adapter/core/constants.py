"""Names shared by the adapter and its host."""

EXTENSION_CONFIG_PREFIX = "explorer"
OUTPUT_CHANNEL_NAME = "Test Explorer"
SERVER_OUTPUT_CHANNEL_NAME = "Test Runner"
CONFIG_FILE_NAME = "explorer.conf"
