# gyansetu/config.py
from pydantic_settings import BaseSettings
from pathlib import Path
from typing import List, Optional

class Settings(BaseSettings):
    # Database (users, local student records, system settings)
    DATABASE_URL: str = "sqlite:///./gyansetu.db"

    # Student storage: "local" (SQL + disk) or "supabase" (hosted REST)
    STORAGE_BACKEND: str = "local"
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    SUPABASE_BUCKET: str = "student-documents"
    SUPABASE_TIMEOUT_SECONDS: float = 20.0

    # File Storage (local backend only, served under /documents)
    UPLOAD_DIR: Path = Path("uploads")
    DOCUMENTS_DIR: Path = UPLOAD_DIR / "student_documents"
    MAX_DOCUMENT_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Sessions
    SESSION_COOKIE_NAME: str = "gs_session"
    SESSION_MAX_AGE_HOURS: int = 24
    SESSION_COOKIE_SECURE: bool = False

    # Mock payment
    PAYMENT_DEFAULT_AMOUNT: int = 19900  # paise
    PAYMENT_DEFAULT_CURRENCY: str = "INR"

    # Admin dashboard
    ADMIN_PAGE_SIZE: int = 50
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    # Live class
    CHAT_HISTORY_LIMIT: int = 100
    LIVE_QUEUE_SIZE: int = 64
    LIVE_KEEPALIVE_SECONDS: float = 15.0

    CORS_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
