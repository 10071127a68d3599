# gyansetu/services/storage/local_store.py
import logging
from pathlib import Path
from typing import Dict, List, Optional
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool
from ...database.models.student import Student, ResultStatus
from ...database.models.system_setting import SystemSetting
from .base import (
    StudentStore, EXPORT_COLUMNS, LIST_COLUMNS, RESULT_PUBLISHED_KEY,
    page_result, parse_student_id, safe_document_name
)

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = {"roll_number", "exam_center", "result_status", "document_url"}


class LocalStudentStore(StudentStore):
    """
    Applications in the local SQL database, attachments on disk.

    Each public method runs its blocking ORM or file body on the threadpool.
    """

    def __init__(self, session_factory: sessionmaker, documents_dir: Path, documents_url: str = "/documents"):
        self.session_factory = session_factory
        self.documents_dir = Path(documents_dir)
        self.documents_url = documents_url.rstrip("/")
        self.documents_dir.mkdir(parents=True, exist_ok=True)

    # ----------------------
    # Blocking bodies
    # ----------------------
    def _create(self, record: Dict) -> dict:
        with self.session_factory() as db:
            fields = dict(record)
            if "result_status" in fields:
                fields["result_status"] = ResultStatus(fields["result_status"])
            student = Student(**fields)
            db.add(student)
            db.commit()
            db.refresh(student)
            return student.to_dict()

    def _list_page(self, page: int, page_size: int) -> dict:
        with self.session_factory() as db:
            total = db.query(Student).count()
            rows = (
                db.query(Student)
                .order_by(Student.created_at.desc(), Student.id.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
                .all()
            )
            data = [{k: row.to_dict()[k] for k in LIST_COLUMNS} for row in rows]
        return page_result(data, total, page, page_size)

    def _list_by_email(self, email: str) -> List[dict]:
        with self.session_factory() as db:
            rows = (
                db.query(Student)
                .filter(Student.email == email)
                .order_by(Student.created_at.desc())
                .all()
            )
            return [row.to_dict() for row in rows]

    def _patch(self, pk: int, fields: Dict) -> Optional[dict]:
        with self.session_factory() as db:
            student = db.get(Student, pk)
            if student is None:
                return None

            for key, value in fields.items():
                if key not in PATCHABLE_FIELDS:
                    raise ValueError(f"Field {key} cannot be patched")
                if key == "result_status" and value is not None:
                    value = ResultStatus(value)
                setattr(student, key, value)

            db.commit()
            db.refresh(student)
            return student.to_dict()

    def _export_all(self) -> List[dict]:
        with self.session_factory() as db:
            rows = db.query(Student).order_by(Student.id.asc()).all()
            return [{k: row.to_dict()[k] for k in EXPORT_COLUMNS} for row in rows]

    def _write_document(self, file_path: Path, content: bytes) -> None:
        with file_path.open("wb") as f:
            f.write(content)

    def _get_result_published(self) -> bool:
        with self.session_factory() as db:
            setting = db.query(SystemSetting).filter(SystemSetting.key == RESULT_PUBLISHED_KEY).first()
            return bool(setting) and setting.value == "true"

    def _set_result_published(self, is_published: bool) -> bool:
        with self.session_factory() as db:
            setting = db.query(SystemSetting).filter(SystemSetting.key == RESULT_PUBLISHED_KEY).first()
            if not setting:
                setting = SystemSetting(key=RESULT_PUBLISHED_KEY)
                db.add(setting)
            setting.value = "true" if is_published else "false"
            db.commit()
        return is_published

    # ----------------------
    # StudentStore
    # ----------------------
    async def create(self, record: Dict) -> dict:
        return await run_in_threadpool(self._create, record)

    async def list_page(self, page: int, page_size: int) -> dict:
        return await run_in_threadpool(self._list_page, page, page_size)

    async def list_by_email(self, email: str) -> List[dict]:
        return await run_in_threadpool(self._list_by_email, email)

    async def patch(self, student_id, fields: Dict) -> Optional[dict]:
        pk = parse_student_id(student_id)
        if pk is None:
            return None
        return await run_in_threadpool(self._patch, pk, fields)

    async def export_all(self) -> List[dict]:
        return await run_in_threadpool(self._export_all)

    async def upload_document(self, student_id, file_name: str, mime_type: Optional[str], content: bytes) -> str:
        safe_name = safe_document_name(student_id, file_name)
        file_path = self.documents_dir / safe_name
        await run_in_threadpool(self._write_document, file_path, content)

        logger.info(f"Stored document for student {student_id} at {file_path}")
        return f"{self.documents_url}/{safe_name}"

    async def get_result_published(self) -> bool:
        return await run_in_threadpool(self._get_result_published)

    async def set_result_published(self, is_published: bool) -> bool:
        return await run_in_threadpool(self._set_result_published, is_published)
