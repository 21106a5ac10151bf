import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Fallback work hours for users whose department sets none (HH:MM)
DEFAULT_START_TIME = os.getenv("DEFAULT_START_TIME", "09:00")
DEFAULT_END_TIME = os.getenv("DEFAULT_END_TIME", "17:00")

# Captures at or above this confidence (0-100) are verified without an admin
AUTO_VERIFY_THRESHOLD = float(os.getenv("AUTO_VERIFY_THRESHOLD", "80"))
TRACK_EARLY_CHECKOUT_STATUS = bool(int(os.getenv("TRACK_EARLY_CHECKOUT_STATUS", "0")))

# QR Code token for attendance check-in
QR_TOKEN = os.getenv("QR_TOKEN", "OFFICE_CHECKIN_SYSTEM")

# Photo uploads are skipped when no private key is set
IMAGEKIT_PRIVATE_KEY = os.getenv("IMAGEKIT_PRIVATE_KEY", "")
IMAGEKIT_UPLOAD_URL = os.getenv("IMAGEKIT_UPLOAD_URL", "https://upload.imagekit.io/api/v1/files/upload")
IMAGEKIT_FOLDER = os.getenv("IMAGEKIT_FOLDER", "/attendance/")
IMAGE_UPLOAD_TIMEOUT = float(os.getenv("IMAGE_UPLOAD_TIMEOUT", "10"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
