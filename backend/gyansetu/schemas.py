"""
Request bodies for the portal API.

Field names follow the JSON the browser sends (camelCase), so no aliases are
needed. Blank-value checks live in the services; these models only reject
bodies that are not JSON objects of the right shape.
"""
from typing import Any, Optional
from pydantic import BaseModel


# ----------------------
# Auth
# ----------------------
class RegisterIn(BaseModel):
    name: str
    email: str
    password: str
    role: str = "user"
    course: Optional[str] = None

class LoginIn(BaseModel):
    email: str
    password: str
    expectedRole: Optional[str] = None

class ResetPasswordIn(BaseModel):
    email: str
    newPassword: str


# ----------------------
# Payment
# ----------------------
class CreateOrderIn(BaseModel):
    # Loosely typed: bad values fall back to defaults instead of failing
    amount: Any = None
    currency: Optional[str] = None

class VerifyPaymentIn(BaseModel):
    orderId: Optional[str] = None
    paymentId: Optional[str] = None
    signature: Optional[str] = None


# ----------------------
# Student application
# ----------------------
class PaymentProof(BaseModel):
    status: Optional[str] = None
    transactionId: Optional[str] = None
    orderId: Optional[str] = None
    paymentId: Optional[str] = None

class DocumentIn(BaseModel):
    fileName: str
    mimeType: Optional[str] = None
    base64: str

class StudentApplicationIn(BaseModel):
    fullName: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    dateOfBirth: Optional[str] = None
    address: Optional[str] = None
    schoolName: Optional[str] = None
    board: Optional[str] = None
    className: Optional[str] = None

    payment: Optional[PaymentProof] = None
    # Older form shape: a bare status and reference with no order/payment ids
    paymentStatus: Optional[str] = None
    paymentReference: Optional[str] = None

    document: Optional[DocumentIn] = None

    def payment_proof(self) -> PaymentProof:
        if self.payment is not None:
            return self.payment
        return PaymentProof(status=self.paymentStatus, transactionId=self.paymentReference)


# ----------------------
# Admin
# ----------------------
class BulkAssignIn(BaseModel):
    csv: str = ""

class ResultToggleIn(BaseModel):
    isPublished: bool = False

class StudentPatchIn(BaseModel):
    resultStatus: Optional[str] = None
    rollNumber: Optional[str] = None
    examCenter: Optional[str] = None
    documentUrl: Optional[str] = None


# ----------------------
# Live class
# ----------------------
class ChatMessageIn(BaseModel):
    message: str

class LiveStreamIn(BaseModel):
    url: Optional[str] = None

class NotificationIn(BaseModel):
    message: Optional[str] = None
