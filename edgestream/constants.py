"""Shared default values used across the streaming components."""

# Database and service ports
DEFAULT_MYSQL_PORT = 3306
DEFAULT_POSTGRESQL_PORT = 5432
DEFAULT_REDIS_PORT = 6379
DEFAULT_REDIS_DB = 0
DEFAULT_REDIS_TIMEOUT_SECONDS = 5
DEFAULT_HTTP_PORT = 8080

# Timeouts and retries
DEFAULT_CONNECTION_TIMEOUT_SECONDS = 30
DEFAULT_RETRY_ATTEMPTS = 5
DEFAULT_RETRY_DELAY_SECONDS = 10

# Buffer and queue sizes
DEFAULT_CHANNEL_BUFFER_SIZE = 100
DEFAULT_ERROR_CHANNEL_SIZE = 10
DEFAULT_BATCH_SIZE = 20

# File system permissions
DEFAULT_DIRECTORY_PERMISSION = 0o750
DEFAULT_FILE_PERMISSION = 0o644

# Time and durations
DEFAULT_CLEANUP_INTERVAL_SECONDS = 30
DEFAULT_TIME_WINDOW_SIZE_MULTIPLIER = 4

# State management
DEFAULT_CHECKPOINT_INTERVAL_MINUTES = 5
DEFAULT_MAX_CHECKPOINTS = 10
DEFAULT_REPLICATION_FACTOR = 3
DEFAULT_AVERAGE_LATENCY_DIVISOR = 2

# Stream engine
DEFAULT_ENGINE_EVENT_CHANNEL_SIZE = 100
DEFAULT_PROCESSOR_STOP_TIMEOUT_SECONDS = 5
DEFAULT_SERVER_READ_TIMEOUT_SECONDS = 30
DEFAULT_SERVER_WRITE_TIMEOUT_SECONDS = 30
DEFAULT_SERVER_IDLE_TIMEOUT_SECONDS = 60
DEFAULT_METRICS_INTERVAL_SECONDS = 30

# Monitoring
DEFAULT_METRICS_PORT = 9090
DEFAULT_HEALTH_CHECK_PORT = 8081

# Encryption: AES-256 key size in bytes
AES_KEY_SIZE = 32

# Integer limits and parsing
MAX_INT32_VALUE = 2147483647
MIN_INT32_VALUE = -2147483648
ENVIRONMENT_VARIABLE_PARTS = 2

# Connectors
DEFAULT_CONNECTOR_EVENT_CHANNEL_SIZE = 100
DEFAULT_CONNECTOR_RESTART_DELAY_MILLISECONDS = 100
MIN_CHECKPOINT_FILE_NAME_PARTS = 3