# gyansetu/services/admin_service.py
import csv
import io
import logging
from typing import Dict, List
from xml.sax.saxutils import escape
from ..errors import ErrorKind, PortalError
from .storage.base import StudentStore, EXPORT_COLUMNS

logger = logging.getLogger(__name__)

RESULT_STATUSES = {"pending", "approved"}


class AdminService:
    """Admin dashboard operations on top of the student store"""

    @staticmethod
    def parse_csv(text: str) -> List[Dict[str, str]]:
        """
        Header row + data rows -> list of {header: value}.
        Values are trimmed; short rows are padded with "".
        """
        # Excel prepends a UTF-8 byte order mark to saved CSV files
        text = (text or "").lstrip("\ufeff")
        lines = [line for line in text.strip().splitlines() if line.strip()]
        if len(lines) < 2:
            return []

        reader = csv.DictReader(lines, restval="")
        reader.fieldnames = [name.strip() for name in reader.fieldnames]

        rows = []
        for raw in reader:
            rows.append({
                key: (value or "").strip()
                for key, value in raw.items()
                if key is not None  # extra cells beyond the header
            })
        return rows

    @staticmethod
    async def bulk_assign(store: StudentStore, csv_text: str) -> int:
        """
        Overwrite roll_number / exam_center from CSV. Rows without an id are
        skipped; blank cells clear the field. Returns rows that hit a record.
        """
        updated_count = 0
        for row in AdminService.parse_csv(csv_text):
            if not row.get("id"):
                continue

            updated = await store.patch(row["id"], {
                "roll_number": row.get("roll_number") or None,
                "exam_center": row.get("exam_center") or None,
            })
            if updated is not None:
                updated_count += 1
            else:
                logger.warning(f"Bulk assign: no application with id {row['id']}")

        logger.info(f"Bulk assign updated {updated_count} applications")
        return updated_count

    @staticmethod
    async def list_students(store: StudentStore, page: int, page_size: int) -> dict:
        page = max(1, page)
        result = await store.list_page(page, page_size)
        result["resultPublished"] = await store.get_result_published()
        return result

    @staticmethod
    async def toggle_result(store: StudentStore, is_published: bool) -> bool:
        published = await store.set_result_published(bool(is_published))
        logger.info(f"Results {'published' if published else 'hidden'}")
        return published

    @staticmethod
    async def update_student(store: StudentStore, student_id, fields: Dict) -> dict:
        status = fields.get("result_status")
        if status is not None and status not in RESULT_STATUSES:
            raise PortalError(ErrorKind.VALIDATION_ERROR, f"Unknown result status: {status}")

        updated = await store.patch(student_id, fields)
        if updated is None:
            raise PortalError(ErrorKind.NOT_FOUND, "Student not found")
        return updated

    @staticmethod
    def to_csv(rows: List[dict]) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({col: "" if row.get(col) is None else row.get(col) for col in EXPORT_COLUMNS})
        return buffer.getvalue()

    @staticmethod
    def to_excel_xml(rows: List[dict]) -> str:
        """SpreadsheetML 2003 workbook; opens in Excel as .xls"""
        def cell(value) -> str:
            text = escape("" if value is None else str(value))
            return f'<Cell><Data ss:Type="String">{text}</Data></Cell>'

        header = (
            '<?xml version="1.0"?>\n<?mso-application progid="Excel.Sheet"?>\n'
            '<Workbook xmlns="urn:schemas-microsoft-com:office:spreadsheet" '
            'xmlns:ss="urn:schemas-microsoft-com:office:spreadsheet">'
            '<Worksheet ss:Name="Students"><Table>'
        )
        footer = "</Table></Worksheet></Workbook>"

        header_row = "<Row>" + "".join(cell(col) for col in EXPORT_COLUMNS) + "</Row>"
        data_rows = "".join(
            "<Row>" + "".join(cell(row.get(col)) for col in EXPORT_COLUMNS) + "</Row>"
            for row in rows
        )
        return f"{header}{header_row}{data_rows}{footer}"
