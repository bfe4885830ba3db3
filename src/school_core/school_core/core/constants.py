"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SCHOOL_ID_PREFIX = "SHS"
SCHOOL_ID_DIGITS = 5
DEFAULT_STUDENT_EMAIL_DOMAIN = "school.local"
STUDENT_COUNTER_NAME = "students"

DEFAULT_ATTENDANCE_WINDOW_START_HOUR = 7
DEFAULT_ATTENDANCE_WINDOW_END_HOUR = 17

DEFAULT_ACADEMIC_YEAR_START_MONTH = 6

DEFAULT_TX_MAX_ATTEMPTS = 5

MIN_DESCRIPTION_LENGTH = 5
MAX_DESCRIPTION_LENGTH = 255
MIN_PASSWORD_LENGTH = 8

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100
MAX_ADDRESS_LENGTH = 500
MIN_ACADEMIC_YEAR_LENGTH = 4
MAX_REFERENCE_LENGTH = 128

# Column widths in schema.sql.
MAX_ID_LENGTH = 64
MAX_ACADEMIC_YEAR_LENGTH = 16
MAX_REASON_LENGTH = 255
MAX_EMAIL_LENGTH = 255
