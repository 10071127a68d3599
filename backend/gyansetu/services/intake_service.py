# gyansetu/services/intake_service.py
import base64
import binascii
import logging
from typing import Optional, Tuple
from ..errors import ErrorKind, PortalError
from ..schemas import StudentApplicationIn, DocumentIn
from .live_hub import LiveHub
from .payment_service import PaymentEngine
from .storage.base import StudentStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    "fullName": "Full name",
    "phone": "Phone",
    "schoolName": "School name",
    "className": "Class",
}


class IntakeService:
    """Scholarship application submission, gated by a verified mock payment"""

    def __init__(
        self,
        store: StudentStore,
        payments: PaymentEngine,
        hub: LiveHub,
        max_document_size: int = 10 * 1024 * 1024
    ):
        self.store = store
        self.payments = payments
        self.hub = hub
        self.max_document_size = max_document_size

    @staticmethod
    def check_required(application: StudentApplicationIn) -> None:
        missing = [
            label for field, label in REQUIRED_FIELDS.items()
            if not (getattr(application, field) or "").strip()
        ]
        if missing:
            raise PortalError(ErrorKind.VALIDATION_ERROR, f"Missing required fields: {', '.join(missing)}")

    def decode_document(self, document: Optional[DocumentIn]) -> Optional[Tuple[DocumentIn, bytes]]:
        if document is None or not document.base64 or not document.fileName:
            return None
        try:
            content = base64.b64decode(document.base64, validate=True)
        except (binascii.Error, ValueError):
            raise PortalError(ErrorKind.VALIDATION_ERROR, "Document is not valid base64.")
        if len(content) > self.max_document_size:
            raise PortalError(ErrorKind.VALIDATION_ERROR, "Document is too large.")
        return document, content

    async def submit(self, user: dict, application: StudentApplicationIn) -> dict:
        """
        Create an application for the logged-in student.

        Order of side effects: claim the transaction, create the record,
        then attach the document. A failed attachment is logged and the
        created record is still returned.
        """
        self.check_required(application)
        attachment = self.decode_document(application.document)

        proof = application.payment_proof()
        if (proof.status or "").lower() != "success" or not proof.transactionId:
            logger.warning(f"Application from {user['email']} rejected: payment not completed")
            raise PortalError(ErrorKind.PAYMENT_NOT_VERIFIED, "Payment verification is mandatory before submission.")

        try:
            self.payments.claim(proof.transactionId, proof.orderId, proof.paymentId)
        except PortalError:
            logger.warning(f"Application from {user['email']} rejected: unverified transaction {proof.transactionId}")
            raise

        record = {
            "full_name": application.fullName.strip(),
            "phone": application.phone.strip(),
            "email": (application.email or "").strip().lower() or user["email"],
            "date_of_birth": application.dateOfBirth,
            "address": application.address,
            "school_name": application.schoolName.strip(),
            "board": application.board,
            "class_name": application.className.strip(),
            "payment_status": "success",
            "payment_reference": proof.transactionId,
            "result_status": "pending",
        }

        try:
            created = await self.store.create(record)
        except Exception:
            # Let the student retry with the same payment
            self.payments.release(proof.transactionId)
            raise

        logger.info(f"Application {created['id']} created for {user['email']} ({proof.transactionId})")

        if attachment:
            document, content = attachment
            try:
                url = await self.store.upload_document(created["id"], document.fileName, document.mimeType, content)
                await self.store.patch(created["id"], {"document_url": url})
                created["document_url"] = url
            except Exception:
                # The record and the claimed payment stand; only the attachment is lost
                logger.exception(f"Document upload failed for application {created['id']}")

        self.hub.announce_application(created)
        return {"student": created, "transactionId": proof.transactionId}

    async def my_applications(self, user: dict) -> dict:
        """The student's own applications; results stay hidden until published"""
        published = await self.store.get_result_published()
        rows = await self.store.list_by_email(user["email"])
        if not published:
            for row in rows:
                row["result_status"] = "pending"
        return {"data": rows, "resultPublished": published}
