import os
from typing import Optional

from dotenv import load_dotenv

# Load .env file variables into environment
load_dotenv()


class Settings:
    """Observer configuration settings loaded from environment variables."""

    # --- Logging Settings ---
    LOG_LEVEL: str = "INFO"
    LOKI_URL: Optional[str] = None

    # --- Observer Settings ---
    MYDB_OBSERVER_ID_FIELD: str = "_id"

    # --- Helper Methods using os.getenv ---
    def get_log_level(self, default: str = "INFO") -> str:
        """Gets the configured log level, defaulting if not set."""
        return os.getenv("LOG_LEVEL", default).upper()

    def get_loki_url(self) -> str | None:
        """Returns the Loki push URL, if set."""
        return os.getenv("LOKI_URL")

    def get_id_field(self, default: str = "_id") -> str:
        """Returns the name of the document identifier field."""
        id_field = os.getenv("MYDB_OBSERVER_ID_FIELD", default).strip()
        if not id_field:
            raise ValueError("MYDB_OBSERVER_ID_FIELD environment variable must not be empty.")
        return id_field
