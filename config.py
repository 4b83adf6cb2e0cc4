# =============================================================================
# CONFIGURATION & CONSTANTS
# =============================================================================

# Clock: one tick every TICK_INTERVAL_BASE_MS / multiplier milliseconds
TICK_INTERVAL_BASE_MS = 250.0
SPEED_MULTIPLIER_MIN = 0.5
SPEED_MULTIPLIER_MAX = 3.0
DEFAULT_SPEED_MULTIPLIER = 1.0

# Host frame loop (runner / HTTP background task)
FRAME_INTERVAL_MS = 50.0
MAX_TICKS_PER_ADVANCE = 10     # Catch-up cap after a stall

# Train speed bounds (velocity units)
TRAIN_SPEED_MIN = 10.0
TRAIN_SPEED_MAX = 90.0

# Operator "recalculate" perturbation
RESCHEDULE_SPEED_MIN = 30.0
RESCHEDULE_SPEED_MAX = 90.0
RESCHEDULE_MAX_DELTA = 5.0     # Speeds move by at most +/- this much
RANDOM_SEED = None             # None = nondeterministic reschedule nudges

# Movement
PROGRESS_SCALE = 1000.0        # progress += speed / PROGRESS_SCALE * length
SAFETY_BUFFER = 0.05           # Past 5% of a segment the train is committed
HOLD_PROGRESS = 0.99           # Parked at the segment boundary
THROUGHPUT_PER_TRAIN = 2       # Trains/hour credited per completed train

# Logging
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# HTTP surface
API_HOST = "127.0.0.1"
API_PORT = 8000
API_PREFIX = "/api"
