"""
Configuration for the call-center replay engine.

All engine times are seconds since the replay epoch (the arrival of the
earliest call record).
"""

# ============================================================================
# REPLAY ENGINE
# ============================================================================

# Samples whose realized wait reaches this bound are discarded
MAX_WAIT_TIME = 7200.0  # 2 hours

# Service observations at or above this bound are not recorded
MAX_SERVICE_TIME = 3600.0  # 1 hour

# Rolling window size for wait/service statistics (last N calls per service)
ROLLING_WINDOW_SIZE = 200

# Minimum separation between two dispatched events
MIN_EVENT_INTERVAL = 0.001

# Delay between popping a queued call and its answer
CONNECTION_DELAY = 0.1

# ============================================================================
# PREDICTORS
# ============================================================================

# Share of (queue / workers) x service time added to both predictors
LOAD_CORRECTION_FACTOR = 0.1

# Multiplier on the fallback estimate when no qualified worker is idle
NO_WORKER_PENALTY = 2.0

# Mean service time (seconds) used before any service time is observed
DEFAULT_SERVICE_TIMES = {
    "technical": 300.0,
    "support": 300.0,
    "sales": 180.0,
    "billing": 180.0,
}
DEFAULT_SERVICE_TIME = 240.0

# Other queue lengths recorded per snapshot
MAX_OTHER_QUEUES = 4

# ============================================================================
# INGESTION
# ============================================================================

CALLS_FILE = "data/all_calls_2014_clean.csv"
ACTIVITIES_FILE = "data/all_activities_2014_clean.csv"

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Services kept for the replay: the TOP_SERVICES busiest with enough volume
TOP_SERVICES = 5
MIN_SERVICE_VOLUME = 200

CALL_COLUMNS = [
    "date_received",
    "queue_name",
    "agent_number",
    "answered",
    "consult",
    "transfer",
    "hangup",
]

ACTIVITY_COLUMNS = [
    "id",
    "campaign_id",
    "startdatetime",
    "enddatetime",
    "agent_id",
]

# ============================================================================
# OUTPUT
# ============================================================================

OUTPUT_DIR = "outputs"
DATASET_DIR = f"{OUTPUT_DIR}/datasets"
PLOT_DIR = f"{OUTPUT_DIR}/plots"
REPORT_DIR = f"{OUTPUT_DIR}/reports"

TRAINING_FILE = "training.csv"
TEST_FILE = "test.csv"

# Train/test partition of the shuffled snapshots
TRAINING_SPLIT = 0.8
SHUFFLE_SEED = 42

# Dataset columns
DATASET_COLUMNS = [
    "T",  # service index (1-based)
    "qT",  # queue length of own service
    "l1",  # other queue lengths
    "l2",
    "l3",
    "l4",
    "t_hour",
    "t_day_of_week",
    "s",  # idle qualified workers
    "P_LES",
    "P_Avg_LES",
    "W",  # realized wait
]
