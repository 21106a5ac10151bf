import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "17:00"

AUTO_VERIFY_THRESHOLD = 80.0
TRACK_EARLY_CHECKOUT_STATUS = False

QR_TOKEN = "TEST_QR_TOKEN"

IMAGEKIT_PRIVATE_KEY = ""
IMAGEKIT_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"
IMAGEKIT_FOLDER = "/attendance/"
IMAGE_UPLOAD_TIMEOUT = 10.0

AUTO_INIT_DB = False
AUTO_SEED_DB = False
