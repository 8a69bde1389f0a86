"""
Typed repositories over the metadata store.

Each repository owns one document kind and translates between the
document models and their stored JSON.
"""

from .auth import AuthRepository
from .payment_proofs import PaymentProofRepository
from .payments import PayPalPaymentRepository
from .site_config import SiteConfigRepository
from .videos import VideoRepository

__all__ = [
    "AuthRepository",
    "PaymentProofRepository",
    "PayPalPaymentRepository",
    "SiteConfigRepository",
    "VideoRepository",
]
