# gyansetu/services/storage/supabase_store.py
import logging
from typing import Dict, List, Optional
import httpx
from ...errors import ErrorKind, PortalError
from .base import (
    StudentStore, EXPORT_COLUMNS, LIST_COLUMNS, RESULT_PUBLISHED_KEY,
    page_result, parse_student_id, safe_document_name
)

logger = logging.getLogger(__name__)


def parse_content_range_total(header: Optional[str]) -> int:
    """`0-49/120` or `*/120` -> 120"""
    if not header or "/" not in header:
        return 0
    total = header.split("/", 1)[1]
    return int(total) if total.isdigit() else 0


class SupabaseStudentStore(StudentStore):
    """Applications in a hosted Supabase project (PostgREST + Storage API)"""

    def __init__(
        self,
        url: str,
        service_role_key: str,
        bucket: str = "student-documents",
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not url or not service_role_key:
            raise RuntimeError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY in environment variables.")

        self.url = url.rstrip("/")
        self.bucket = bucket
        self.client = httpx.AsyncClient(
            base_url=self.url,
            headers={
                "apikey": service_role_key,
                "Authorization": f"Bearer {service_role_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Supabase {method} {path} failed: {e}")
            raise PortalError(ErrorKind.STORAGE_UNAVAILABLE, "Storage backend is unavailable") from e
        return response

    async def _json(self, method: str, path: str, **kwargs):
        response = await self._request(method, path, **kwargs)
        if response.is_error:
            logger.error(f"Supabase request failed ({response.status_code}): {response.text}")
            raise PortalError(ErrorKind.STORAGE_UNAVAILABLE, f"Storage request failed ({response.status_code})")
        if "application/json" in response.headers.get("content-type", ""):
            return response.json()
        return response.text

    async def create(self, record: Dict) -> dict:
        rows = await self._json(
            "POST", "/rest/v1/students",
            json=record,
            headers={"Prefer": "return=representation"},
        )
        return rows[0]

    async def list_page(self, page: int, page_size: int) -> dict:
        offset = (page - 1) * page_size
        response = await self._request(
            "GET", "/rest/v1/students",
            params={"select": ",".join(LIST_COLUMNS), "order": "created_at.desc"},
            headers={"Range": f"{offset}-{offset + page_size - 1}", "Prefer": "count=exact"},
        )
        total = parse_content_range_total(response.headers.get("content-range"))

        # PostgREST answers 416 when the range starts past the last row
        if response.status_code == 416:
            return page_result([], total, page, page_size)
        if response.is_error:
            logger.error(f"Supabase list failed ({response.status_code}): {response.text}")
            raise PortalError(ErrorKind.STORAGE_UNAVAILABLE, f"Storage request failed ({response.status_code})")

        return page_result(response.json(), total, page, page_size)

    async def list_by_email(self, email: str) -> List[dict]:
        return await self._json(
            "GET", "/rest/v1/students",
            params={"select": ",".join(EXPORT_COLUMNS), "email": f"eq.{email}", "order": "created_at.desc"},
        )

    async def patch(self, student_id, fields: Dict) -> Optional[dict]:
        # PostgREST rejects a non-integer id filter with 400; treat it as no match
        pk = parse_student_id(student_id)
        if pk is None:
            return None

        rows = await self._json(
            "PATCH", "/rest/v1/students",
            params={"id": f"eq.{pk}"},
            json=fields,
            headers={"Prefer": "return=representation"},
        )
        return rows[0] if rows else None

    async def export_all(self) -> List[dict]:
        return await self._json(
            "GET", "/rest/v1/students",
            params={"select": ",".join(EXPORT_COLUMNS), "order": "id.asc"},
        )

    async def upload_document(self, student_id, file_name: str, mime_type: Optional[str], content: bytes) -> str:
        safe_name = safe_document_name(student_id, file_name)
        await self._json(
            "POST", f"/storage/v1/object/{self.bucket}/{safe_name}",
            content=content,
            headers={"Content-Type": mime_type or "application/octet-stream", "x-upsert": "true"},
        )
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{safe_name}"

    async def get_result_published(self) -> bool:
        rows = await self._json(
            "GET", "/rest/v1/system_settings",
            params={"key": f"eq.{RESULT_PUBLISHED_KEY}", "select": "value", "limit": "1"},
        )
        return bool(rows) and rows[0].get("value") == "true"

    async def set_result_published(self, is_published: bool) -> bool:
        value = "true" if is_published else "false"
        existing = await self._json(
            "GET", "/rest/v1/system_settings",
            params={"key": f"eq.{RESULT_PUBLISHED_KEY}", "select": "id,key,value"},
        )
        if existing:
            await self._json(
                "PATCH", "/rest/v1/system_settings",
                params={"key": f"eq.{RESULT_PUBLISHED_KEY}"},
                json={"value": value},
                headers={"Prefer": "return=representation"},
            )
        else:
            await self._json(
                "POST", "/rest/v1/system_settings",
                json={"key": RESULT_PUBLISHED_KEY, "value": value},
                headers={"Prefer": "return=representation"},
            )
        return is_published

    async def close(self) -> None:
        await self.client.aclose()
