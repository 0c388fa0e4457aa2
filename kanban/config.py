import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./kanban.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = os.getenv("SQL_ECHO", "0").lower() in ("1", "true", "yes")
API_PREFIX = "/v1"
VERSION = "1.0.0"
