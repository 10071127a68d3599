# gyansetu/services/storage/factory.py
from sqlalchemy.orm import sessionmaker
from ...config import Settings
from .base import StudentStore
from .local_store import LocalStudentStore
from .supabase_store import SupabaseStudentStore


def build_student_store(settings: Settings, session_factory: sessionmaker) -> StudentStore:
    backend = settings.STORAGE_BACKEND.strip().lower()
    if backend == "local":
        return LocalStudentStore(session_factory, settings.DOCUMENTS_DIR)
    if backend == "supabase":
        return SupabaseStudentStore(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_ROLE_KEY,
            bucket=settings.SUPABASE_BUCKET,
            timeout=settings.SUPABASE_TIMEOUT_SECONDS,
        )
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
