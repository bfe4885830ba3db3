import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_core"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, the app applies schema.sql on startup (idempotent: CREATE TABLE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

ATTENDANCE_WINDOW_START_HOUR = int(os.getenv("ATTENDANCE_WINDOW_START_HOUR", "7"))
ATTENDANCE_WINDOW_END_HOUR = int(os.getenv("ATTENDANCE_WINDOW_END_HOUR", "17"))

# Empty means: derive from today's date, with the year starting in ACADEMIC_YEAR_START_MONTH
CURRENT_ACADEMIC_YEAR = os.getenv("CURRENT_ACADEMIC_YEAR") or None
ACADEMIC_YEAR_START_MONTH = int(os.getenv("ACADEMIC_YEAR_START_MONTH", "6"))

SCHOOL_ID_PREFIX = os.getenv("SCHOOL_ID_PREFIX", "SHS")
STUDENT_EMAIL_DOMAIN = os.getenv("STUDENT_EMAIL_DOMAIN", "school.local")

TX_MAX_ATTEMPTS = int(os.getenv("TX_MAX_ATTEMPTS", "5"))
