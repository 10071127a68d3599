# gyansetu/services/storage/base.py
import math
import re
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

# Column order of the admin export
EXPORT_COLUMNS = [
    "id", "full_name", "phone", "email", "date_of_birth", "address", "school_name", "board",
    "class_name", "payment_status", "payment_reference", "roll_number", "exam_center",
    "result_status", "document_url", "created_at",
]

# Columns shown on the paginated admin dashboard
LIST_COLUMNS = [
    "id", "full_name", "phone", "email", "school_name", "board", "class_name",
    "payment_status", "roll_number", "exam_center", "result_status", "created_at",
]

RESULT_PUBLISHED_KEY = "result_published"


def page_result(data: List[dict], total: int, page: int, page_size: int) -> dict:
    return {
        "data": data,
        "total": total,
        "page": page,
        "pageSize": page_size,
        "totalPages": max(1, math.ceil(total / page_size)),
    }


def parse_student_id(student_id) -> Optional[int]:
    """Integer primary key from a path or CSV cell; None when it is not one"""
    try:
        return int(str(student_id).strip())
    except (TypeError, ValueError):
        return None


def safe_document_name(student_id, file_name: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9._-]", "_", file_name or "document")
    return f"{student_id}-{int(time.time() * 1000)}-{cleaned}"


class StudentStore(ABC):
    """Persistence for scholarship applications and the result publish flag"""

    @abstractmethod
    async def create(self, record: Dict) -> dict:
        """Insert an application and return it with its assigned id"""

    @abstractmethod
    async def list_page(self, page: int, page_size: int) -> dict:
        """Newest first; returns the `page_result` shape"""

    @abstractmethod
    async def list_by_email(self, email: str) -> List[dict]:
        ...

    @abstractmethod
    async def patch(self, student_id, fields: Dict) -> Optional[dict]:
        """Overwrite the given fields; None when no record has that id"""

    @abstractmethod
    async def export_all(self) -> List[dict]:
        """Every application with EXPORT_COLUMNS, ordered by id"""

    @abstractmethod
    async def upload_document(self, student_id, file_name: str, mime_type: Optional[str], content: bytes) -> str:
        """Store an attachment and return its public URL"""

    @abstractmethod
    async def get_result_published(self) -> bool:
        ...

    @abstractmethod
    async def set_result_published(self, is_published: bool) -> bool:
        ...

    async def close(self) -> None:
        return None
