import os
from dotenv import load_dotenv

# ---------------------------
# Load environment variables
# ---------------------------
load_dotenv()

# ---------------------------
# Database
# ---------------------------
DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    raise ValueError("❌ DATABASE_URL is not set in the .env file")

SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

# ---------------------------
# Tokens
# ---------------------------
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# ---------------------------
# Uploads
# ---------------------------
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
UPLOADS_DIR = os.getenv("UPLOADS_DIR", os.path.join(BASE_DIR, "uploads"))

# ---------------------------
# Event defaults
# ---------------------------
DEFAULT_MAX_FILE_SIZE_MB = int(os.getenv("DEFAULT_MAX_FILE_SIZE_MB", 10))
DEFAULT_ALLOWED_FILE_TYPES = [
    ext.strip().lower()
    for ext in os.getenv("DEFAULT_ALLOWED_FILE_TYPES", "pdf,doc,docx").split(",")
    if ext.strip()
]
DEFAULT_ASSIGNMENT_MAX_SCORE = int(os.getenv("DEFAULT_ASSIGNMENT_MAX_SCORE", 100))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
