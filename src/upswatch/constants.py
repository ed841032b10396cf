from datetime import timedelta

# Status log naming
LOG_FILE_SUFFIX = "_battery_status_log.txt"
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_DIRECTORY = "logs"

# Upper bound on a single power-off request
DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 60

# Process exit status for fatal configuration errors and unhandled faults
EXIT_FAILURE = -1

# Throttle windows are expressed in these units per power state
ON_POWER_INTERVAL_UNIT = timedelta(minutes=1)
ON_BATTERY_INTERVAL_UNIT = timedelta(seconds=1)
