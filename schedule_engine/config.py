"""
Tunable constants and alert configuration.
"""

import os
from pydantic import BaseModel, Field

# Percentage points a task may trail its time-based expected progress
DELAY_TOLERANCE_PERCENT = 10

# Utilization at or above which a resource is reported as 'limited'
LIMITED_UTILIZATION_PERCENT = 70

# Assignments a person or subcontractor is expected to carry at once
MAX_CONCURRENT_ASSIGNMENTS = 3

# Subcontractor evaluation rank -> performance score
PERFORMANCE_SCORES = {"A": 95, "B": 80, "C": 65, "D": 50}
DEFAULT_PERFORMANCE_SCORE = 50

DEFAULT_DELAY_THRESHOLD_DAYS = 3
DEFAULT_UPCOMING_DAYS = 7

DELAY_THRESHOLD_ENV = "SCHEDULE_DELAY_THRESHOLD_DAYS"
UPCOMING_DAYS_ENV = "SCHEDULE_UPCOMING_DAYS"


class AlertConfig(BaseModel):
    """Windows used by the alert generator."""
    delay_threshold_days: int = Field(
        default=DEFAULT_DELAY_THRESHOLD_DAYS,
        ge=0,
        description="Deadlines this close are raised to 'warning'"
    )
    upcoming_days: int = Field(
        default=DEFAULT_UPCOMING_DAYS,
        ge=0,
        description="Deadlines this close produce an alert at all"
    )

    @classmethod
    def from_env(cls, environ=None) -> "AlertConfig":
        """Build a config from environment variables, falling back to defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        if environ.get(DELAY_THRESHOLD_ENV):
            values["delay_threshold_days"] = int(environ[DELAY_THRESHOLD_ENV])
        if environ.get(UPCOMING_DAYS_ENV):
            values["upcoming_days"] = int(environ[UPCOMING_DAYS_ENV])
        return cls(**values)
