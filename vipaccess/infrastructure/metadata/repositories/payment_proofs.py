"""
Repository for manual payment proofs (payment-proofs/<id>.json).

A proof is an uploaded receipt image plus a review record. The image goes
to the content bucket; the record goes to the metadata store. Deleting a
proof deletes both.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Optional

from ....core.documents.errors import DocumentNotFoundError, DocumentValidationError
from ....core.documents.keys import DocumentType, generate_document_id
from ....core.documents.models import PaymentProof, ProofStatus, utc_now_iso
from ....core.documents.serialization import from_document, to_document
from ...storage.client import StorageClient
from ..store import MetadataStore

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "payment-proofs"


def _safe_filename(filename: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "_", filename) or "proof"


class PaymentProofRepository:

    def __init__(
        self,
        store: MetadataStore,
        storage: StorageClient,
        content_bucket: str,
    ) -> None:
        self._store = store
        self._storage = storage
        self._content_bucket = content_bucket

    async def upload_image(
        self,
        data: bytes,
        filename: str,
        content_type: str,
    ) -> tuple[str, str]:
        """Store a proof image and return (key, signed url)."""
        if not data:
            raise DocumentValidationError("Proof image is empty")

        key = f"{IMAGE_PREFIX}/{int(time.time() * 1000)}_{_safe_filename(filename)}"
        await self._storage.put_object(
            self._content_bucket, key, data, content_type, filename=filename
        )
        url = await self._storage.get_signed_url(self._content_bucket, key)
        return key, url

    async def create(
        self,
        image: bytes,
        filename: str,
        content_type: str,
        amount: float,
        currency: str = "BRL",
        video_id: str = "",
        video_title: str = "",
    ) -> PaymentProof:
        """Upload the image, then record a pending proof pointing at it."""
        if amount < 0:
            raise DocumentValidationError("Proof amount cannot be negative")

        image_key, image_url = await self.upload_image(image, filename, content_type)

        proof = PaymentProof(
            id=generate_document_id("proof"),
            amount=amount,
            currency=currency,
            video_id=video_id,
            video_title=video_title,
            proof_image_key=image_key,
            proof_image_url=image_url,
        )
        await self.save(proof)
        logger.info("Created payment proof", extra={"proof_id": proof.id, "amount": amount})
        return proof

    async def save(self, proof: PaymentProof) -> str:
        return await self._store.save(
            DocumentType.PAYMENT_PROOFS, to_document(proof), proof.id
        )

    async def get(self, proof_id: str) -> Optional[PaymentProof]:
        document = await self._store.load(DocumentType.PAYMENT_PROOFS, proof_id)
        if document is None:
            return None
        return from_document(PaymentProof, document)

    async def list(self) -> list[PaymentProof]:
        proofs = []
        for document in await self._store.list(DocumentType.PAYMENT_PROOFS):
            try:
                proofs.append(from_document(PaymentProof, document))
            except DocumentValidationError as e:
                logger.warning("Skipping invalid proof document", extra={"error": str(e)})
        return proofs

    async def list_approved(self) -> list[PaymentProof]:
        """Approved proofs only, as shown on the home page."""
        return [p for p in await self.list() if p.status is ProofStatus.APPROVED]

    async def update(
        self,
        proof_id: str,
        amount: Optional[float] = None,
        status: Optional[ProofStatus] = None,
        rejection_reason: Optional[str] = None,
    ) -> PaymentProof:
        """Change amount and/or review status, stamping approvedAt/rejectedAt."""
        proof = await self.get(proof_id)
        if proof is None:
            raise DocumentNotFoundError(DocumentType.PAYMENT_PROOFS.value, proof_id)

        if amount is not None:
            if amount < 0:
                raise DocumentValidationError("Proof amount cannot be negative")
            proof.amount = amount

        if status is not None:
            proof.status = status
            if status is ProofStatus.APPROVED:
                proof.approved_at = utc_now_iso()
                proof.rejection_reason = None
            elif status is ProofStatus.REJECTED:
                proof.rejected_at = utc_now_iso()
                proof.rejection_reason = rejection_reason

        await self.save(proof)
        return proof

    async def approve(self, proof_id: str) -> PaymentProof:
        return await self.update(proof_id, status=ProofStatus.APPROVED)

    async def reject(self, proof_id: str, reason: Optional[str] = None) -> PaymentProof:
        return await self.update(proof_id, status=ProofStatus.REJECTED, rejection_reason=reason)

    async def delete(self, proof_id: str) -> bool:
        """Delete the image object (if any) and then the record."""
        proof = await self.get(proof_id)
        if proof is not None and proof.proof_image_key:
            await self._storage.delete_object(self._content_bucket, proof.proof_image_key)
        return await self._store.delete(DocumentType.PAYMENT_PROOFS, proof_id)
