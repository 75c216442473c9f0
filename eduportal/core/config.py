import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# DEV ONLY: local sqlite file. Point EDUPORTAL_DATABASE_URL elsewhere in deployments.
DATABASE_URL = os.getenv("EDUPORTAL_DATABASE_URL", f"sqlite:///{BASE_DIR}/eduportal.db")

# Grading client
API_URL = os.getenv("EDUPORTAL_API_URL", "http://localhost:8000")
HTTP_TIMEOUT_SECONDS = float(os.getenv("EDUPORTAL_HTTP_TIMEOUT", "10"))

# Caller identity is resolved upstream; the service only maps this header to a user row.
IDENTITY_HEADER = "X-User-Id"
