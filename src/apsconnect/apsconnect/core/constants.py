"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_QR_MINUTES = 15
DEFAULT_MAX_MARKS = 100
DEFAULT_LIST_LIMIT = 200

LIBRARY_FINE_PER_DAY = 5

ATTENDANCE_COMPLIANT_PERCENT = 75
ATTENDANCE_AT_RISK_PERCENT = 50

RESULT_PASS_PERCENT = 40

TOKEN_MAX_AGE_SECONDS = 7 * 24 * 3600
