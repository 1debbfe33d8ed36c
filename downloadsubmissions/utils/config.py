# downloadsubmissions/utils/config.py
import os
import tempfile
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env file before defining settings
load_dotenv()

class Settings(BaseSettings):
    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./downloadsubmissions.db")
    database_echo: bool = False

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Where packed archives are written before they are streamed
    temp_dir: str = os.getenv("TEMP_DIR", tempfile.gettempdir())
    zip_compression_level: int = 6

    # Student folder naming
    timezone: str = os.getenv("TIMEZONE", "UTC")
    fullname_format: str = "{firstname} {lastname}"

settings = Settings()

# --- Validation ---
try:
    ZoneInfo(settings.timezone)
except (ZoneInfoNotFoundError, ValueError):
    raise ValueError(f"TIMEZONE '{settings.timezone}' is not a known IANA time zone")
try:
    settings.fullname_format.format(
        firstname="", lastname="", middlename="", alternatename="",
        firstnamephonetic="", lastnamephonetic="",
    )
except (KeyError, IndexError) as e:
    raise ValueError(f"fullname_format references an unknown name field: {e}")
if not 0 <= settings.zip_compression_level <= 9:
    raise ValueError("zip_compression_level must be between 0 and 9")
