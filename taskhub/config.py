"""Environment configuration for the taskhub backend."""
import os

from dotenv import load_dotenv

# Values from a local .env file never override variables already exported
load_dotenv()

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./taskhub.db")
DATABASE_ECHO = os.environ.get("DATABASE_ECHO", "false").lower() in ("1", "true", "yes")

# Timezone used to decide what "today" is for buffer and regeneration decisions
APP_TIMEZONE = os.environ.get("APP_TIMEZONE", "UTC")

# Number of future occurrences kept materialized per active template
RECURRING_BUFFER_SIZE = int(os.environ.get("RECURRING_BUFFER_SIZE", "12"))

SWEEP_INTERVAL_SECONDS = int(os.environ.get("SWEEP_INTERVAL_SECONDS", "3600"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
