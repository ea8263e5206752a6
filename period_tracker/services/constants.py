"""
Constants for cycle prediction and statistics.
"""

# Used when the user has not configured a cycle length
DEFAULT_CYCLE_LENGTH = 28

# Ovulation is assumed to happen this many days before the next period
LUTEAL_PHASE_DAYS = 14

# Fertile window offsets relative to the predicted ovulation day
FERTILE_DAYS_BEFORE_OVULATION = 3
FERTILE_DAYS_AFTER_OVULATION = 2

# An open period counts as ongoing for at most this many days after its start
OPEN_PERIOD_MAX_DAYS = 7

# Exclusive bounds for a regular average cycle length
REGULAR_CYCLE_MIN_DAYS = 21
REGULAR_CYCLE_MAX_DAYS = 35

# Record counts fetched by the engine
STATUS_RECENT_PERIODS = 3
STATS_HISTORY_PERIODS = 6
DEFAULT_HISTORY_LIMIT = 12
