"""logseal constants and defaults.

All magic numbers live here. No exceptions.
"""

# Entry kinds (canonicalization discriminator)
KIND_SENSOR_READING = "sensor_reading"
KIND_DRONE_SAMPLE = "drone_sample"
KIND_COMMAND = "command"
ENTRY_KINDS = (KIND_SENSOR_READING, KIND_DRONE_SAMPLE, KIND_COMMAND)

# Ledger log types
LOG_KIND_DEVICE = "DEVICE_LOG"
LOG_KIND_COMMAND = "COMMAND_LOG"
LOG_KINDS = (LOG_KIND_DEVICE, LOG_KIND_COMMAND)

# Subject used when a log is not bound to a registered device
BROADCAST_SUBJECT = "0x" + "00" * 32

# Digest algorithms
ALGO_SHA256 = "sha256"
ALGO_KECCAK256 = "keccak256"
DIGEST_SIZE = 32

# Numeric precision (decimal places)
PRECISION_GEODETIC = 7
PRECISION_ALTITUDE = 2
PRECISION_ATTITUDE = 3
PRECISION_WATER_QUALITY = 2

# Sweeper
SWEEP_DEFAULT_BATCH = 50
SWEEP_DEFAULT_WORKERS = 4
SWEEP_DEFAULT_INTERVAL_S = 60
SWEEP_GRACE_S = 30
BACKOFF_BASE_S = 30
BACKOFF_MAX_S = 3600

# Pipeline
PIPELINE_DEFAULT_WORKERS = 4

# Default locations
DEFAULT_STORE_PATH = "logseal_records.jsonl"
DEFAULT_LEDGER_PATH = "logseal_ledger.jsonl"
