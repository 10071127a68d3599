from fastapi import APIRouter, Depends, Request
from gyansetu.errors import ErrorKind, PortalError
from gyansetu.schemas import CreateOrderIn, VerifyPaymentIn
from gyansetu.services.access_guard import require_admin
from gyansetu.services.payment_service import PaymentEngine

router = APIRouter(prefix="/payment", tags=["payment"])


def get_payments(request: Request) -> PaymentEngine:
    return request.app.state.payments

@router.post("/create-order")
def create_order(payload: CreateOrderIn, payments: PaymentEngine = Depends(get_payments)):
    order = payments.create_order(payload.amount, payload.currency)
    return {"success": True, **order}

@router.post("/verify")
def verify_payment(payload: VerifyPaymentIn, payments: PaymentEngine = Depends(get_payments)):
    transaction = payments.verify(payload.orderId, payload.paymentId, payload.signature)
    return {"success": True, **transaction}

@router.get("/transactions/{transaction_id}")
def get_transaction(
    transaction_id: str,
    payments: PaymentEngine = Depends(get_payments),
    admin: dict = Depends(require_admin)
):
    transaction = payments.get_transaction(transaction_id)
    if not transaction:
        raise PortalError(ErrorKind.NOT_FOUND, "Transaction not found")
    return transaction
