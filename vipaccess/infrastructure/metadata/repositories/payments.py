"""
Repository for PayPal payment records (paypal-payments/<id>.json).

Records are created when checkout starts and updated when the provider
calls back. They are never deleted. Talking to PayPal itself is somebody
else's job; this only keeps the bookkeeping.
"""

from __future__ import annotations

import logging
from typing import Optional

from ....core.documents.errors import DocumentNotFoundError, DocumentValidationError
from ....core.documents.keys import DocumentType, generate_document_id
from ....core.documents.models import PaymentStatus, PayPalPayment, utc_now_iso
from ....core.documents.serialization import from_document, to_document
from ..store import MetadataStore

logger = logging.getLogger(__name__)


class PayPalPaymentRepository:

    def __init__(self, store: MetadataStore) -> None:
        self._store = store

    async def save(self, payment: PayPalPayment) -> str:
        return await self._store.save(
            DocumentType.PAYPAL_PAYMENTS, to_document(payment), payment.id
        )

    async def create(
        self,
        video_id: str,
        video_title: str,
        amount: float,
        currency: str = "USD",
        status: PaymentStatus = PaymentStatus.PENDING,
        paypal_order_id: Optional[str] = None,
        paypal_payer_id: Optional[str] = None,
    ) -> PayPalPayment:
        payment = PayPalPayment(
            id=generate_document_id("paypal"),
            video_id=video_id,
            video_title=video_title,
            amount=amount,
            currency=currency,
            status=status,
            paypal_order_id=paypal_order_id,
            paypal_payer_id=paypal_payer_id,
            completed_at=utc_now_iso() if status is PaymentStatus.COMPLETED else None,
        )
        await self.save(payment)
        logger.info(
            "Created payment",
            extra={"payment_id": payment.id, "video_id": video_id, "amount": amount}
        )
        return payment

    async def get(self, payment_id: str) -> Optional[PayPalPayment]:
        document = await self._store.load(DocumentType.PAYPAL_PAYMENTS, payment_id)
        if document is None:
            return None
        return from_document(PayPalPayment, document)

    async def list(self) -> list[PayPalPayment]:
        payments = []
        for document in await self._store.list(DocumentType.PAYPAL_PAYMENTS):
            try:
                payments.append(from_document(PayPalPayment, document))
            except DocumentValidationError as e:
                logger.warning("Skipping invalid payment document", extra={"error": str(e)})
        return payments

    async def list_by_video(self, video_id: str) -> list[PayPalPayment]:
        """Payments for one video, newest first."""
        matching = [p for p in await self.list() if p.video_id == video_id]
        return sorted(matching, key=lambda p: p.created_at, reverse=True)

    async def update_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        paypal_order_id: Optional[str] = None,
        paypal_payer_id: Optional[str] = None,
    ) -> PayPalPayment:
        """
        Record a provider callback.

        Provider ids are only overwritten when given. completedAt is
        stamped when the payment completes.
        """
        payment = await self.get(payment_id)
        if payment is None:
            raise DocumentNotFoundError(DocumentType.PAYPAL_PAYMENTS.value, payment_id)

        payment.status = status
        payment.paypal_order_id = paypal_order_id or payment.paypal_order_id
        payment.paypal_payer_id = paypal_payer_id or payment.paypal_payer_id
        if status is PaymentStatus.COMPLETED:
            payment.completed_at = utc_now_iso()

        await self.save(payment)
        logger.info(
            "Updated payment status",
            extra={"payment_id": payment_id, "status": status.value}
        )
        return payment
