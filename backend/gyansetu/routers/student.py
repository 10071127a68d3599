from fastapi import APIRouter, Depends, Request
from gyansetu.schemas import StudentApplicationIn
from gyansetu.services.access_guard import require_student
from gyansetu.services.intake_service import IntakeService

router = APIRouter(prefix="/student", tags=["student"])


def get_intake(request: Request) -> IntakeService:
    return request.app.state.intake

@router.post("/register", status_code=201)
async def register_application(
    payload: StudentApplicationIn,
    user: dict = Depends(require_student),
    intake: IntakeService = Depends(get_intake)
):
    """
    Submit the scholarship form. Requires a `user` session and the
    transaction returned by /payment/verify:

    - payment: {status: "success", transactionId, orderId, paymentId}
    - document (optional): {fileName, mimeType, base64}
    """
    return await intake.submit(user, payload)

@router.get("/me/applications")
async def my_applications(
    user: dict = Depends(require_student),
    intake: IntakeService = Depends(get_intake)
):
    return await intake.my_applications(user)
