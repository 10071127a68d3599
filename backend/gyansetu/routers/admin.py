from datetime import datetime
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from gyansetu.errors import ErrorKind, PortalError
from gyansetu.schemas import BulkAssignIn, ResultToggleIn, StudentPatchIn
from gyansetu.services.access_guard import require_admin, get_settings
from gyansetu.services.admin_service import AdminService
from gyansetu.services.storage.base import StudentStore

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

# request field -> column
PATCH_COLUMNS = {
    "resultStatus": "result_status",
    "rollNumber": "roll_number",
    "examCenter": "exam_center",
    "documentUrl": "document_url",
}


def get_store(request: Request) -> StudentStore:
    return request.app.state.store

@router.get("/students")
async def list_students(request: Request, page: int = 1, store: StudentStore = Depends(get_store)):
    return await AdminService.list_students(store, page, get_settings(request).ADMIN_PAGE_SIZE)

@router.patch("/students/{student_id}")
async def update_student(student_id: int, payload: StudentPatchIn, store: StudentStore = Depends(get_store)):
    # Only the fields present in the body are written
    fields = {
        PATCH_COLUMNS[name]: getattr(payload, name)
        for name in payload.model_fields_set
    }
    if not fields:
        raise PortalError(ErrorKind.VALIDATION_ERROR, "Nothing to update")
    return {"student": await AdminService.update_student(store, student_id, fields)}

@router.post("/bulk-assign")
async def bulk_assign(payload: BulkAssignIn, store: StudentStore = Depends(get_store)):
    updated_count = await AdminService.bulk_assign(store, payload.csv)
    return {"updatedCount": updated_count}

@router.post("/result-toggle")
async def result_toggle(payload: ResultToggleIn, store: StudentStore = Depends(get_store)):
    is_published = await AdminService.toggle_result(store, payload.isPublished)
    return {"isPublished": is_published}

@router.get("/export")
async def export_students(format: str = "csv", store: StudentStore = Depends(get_store)):
    rows = await store.export_all()
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")

    if format == "xls":
        return Response(
            content=AdminService.to_excel_xml(rows),
            media_type="application/vnd.ms-excel",
            headers={"Content-Disposition": f'attachment; filename="students-export-{stamp}.xls"'}
        )
    if format != "csv":
        raise PortalError(ErrorKind.VALIDATION_ERROR, "Export format must be csv or xls")

    return Response(
        content=AdminService.to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="students-export-{stamp}.csv"'}
    )
