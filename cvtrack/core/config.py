import os
import logging
from pydantic import BaseModel, Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

class AISettings(BaseModel):
    openrouter_api_key: Optional[str] = Field(default=os.getenv("OPENROUTER_API_KEY"))
    base_url: str = Field(default=os.getenv("AI_BASE_URL", "https://openrouter.ai/api/v1/chat/completions"))
    model_name: str = Field(default=os.getenv("AI_MODEL_NAME", "x-ai/grok-4-fast"))
    kill_switch: bool = Field(default=os.getenv("AI_KILL_SWITCH", "false").lower() == "true")
    request_timeout: int = int(os.getenv("AI_REQUEST_TIMEOUT", "60"))

class MailSettings(BaseModel):
    gmail_api_url: str = Field(default=os.getenv("GMAIL_API_URL", "https://gmail.googleapis.com/gmail/v1/users/me"))
    request_timeout: int = int(os.getenv("GMAIL_REQUEST_TIMEOUT", "30"))

class StorageSettings(BaseModel):
    upload_dir: str = Field(default=os.getenv("UPLOAD_DIR", "uploads"))

class SyncSettings(BaseModel):
    # Low threshold: only blacklisted attachments are skipped
    max_results: int = int(os.getenv("SYNC_MAX_RESULTS", "50"))
    filter_threshold: int = int(os.getenv("SYNC_FILTER_THRESHOLD", "10"))

class Config(BaseModel):
    app_name: str = "cvtrack"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./cvtrack.db")

    # Fernet key for mailbox access tokens at rest
    encryption_key: Optional[str] = os.getenv("ENCRYPTION_KEY")

    ai: AISettings = AISettings()
    mail: MailSettings = MailSettings()
    storage: StorageSettings = StorageSettings()
    sync: SyncSettings = SyncSettings()

settings = Config()

_logger = logging.getLogger(__name__)
if settings.environment == "production" and not settings.ai.openrouter_api_key:
    _logger.warning("OPENROUTER_API_KEY is not set; CV classification and matching will fail.")
