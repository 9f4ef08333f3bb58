"""Constants for taskcadence.

This module centralizes all magic numbers and default values used throughout the engine.
"""


# Generation
MAX_GENERATION_ITERATIONS = 1000  # Absolute safety bound per generation call
DEFAULT_MAX_INSTANCES = 100

# Conflict detection
DEFAULT_CONFLICT_DURATION_MINUTES = 60

# Scheduling policy defaults
DEFAULT_MAX_DELAY_DAYS = 7
DEFAULT_ALLOW_RESCHEDULE = True

# Snooze policy (informational; the lifecycle does not enforce the cap)
DEFAULT_SNOOZE_INTERVAL_MINUTES = 10
DEFAULT_SNOOZE_MAX_COUNT = 3

# Metadata bounds
MIN_PRIORITY = 1
MAX_PRIORITY = 5
DEFAULT_PRIORITY = 3
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5
DEFAULT_DIFFICULTY = 3
DEFAULT_CATEGORY = "general"
