"""
Document models for the paywalled content site.

Every model here is persisted as one JSON document in the metadata bucket.
They have no dependencies on storage or HTTP; repositories translate them
to and from the stored camelCase JSON.

Timestamps are kept as ISO-8601 strings ("2024-05-01T12:00:00.000Z") so
documents written by earlier versions of the site load unchanged.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .errors import DocumentValidationError
from .keys import generate_document_id

SCHEMA_VERSION = "1.0.0"

DEFAULT_TELEGRAM_USERNAME = "alexchannel"
DEFAULT_ADMIN_EMAIL = "admin@gmail.com"
DEFAULT_ADMIN_PASSWORD = "admin123"


def utc_now_iso() -> str:
    """Current UTC time with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------

class VideoStatus(Enum):
    PUBLISHED = "published"
    DRAFT = "draft"
    PROCESSING = "processing"


@dataclass
class VideoMetadata:
    """
    A sellable video.

    Created when an upload completes, edited by the admin, and removed
    outright on delete (there is no soft delete). The content file itself
    lives in the content bucket under video_file_key.
    """
    id: str = field(default_factory=lambda: generate_document_id("video"))
    title: str = ""
    description: str = ""
    price: float = 0.0
    status: VideoStatus = VideoStatus.DRAFT
    duration: Optional[str] = None
    upload_date: Optional[str] = None
    views: int = 0
    tags: list[str] = field(default_factory=list)
    video_file_key: Optional[str] = None
    video_url: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    product_link: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id.strip():
            raise DocumentValidationError("Video id cannot be empty")
        if not self.title.strip():
            raise DocumentValidationError("Video title cannot be empty")
        if self.price < 0:
            raise DocumentValidationError("Video price cannot be negative")
        if self.views < 0:
            raise DocumentValidationError("Video views cannot be negative")

    @property
    def is_published(self) -> bool:
        return self.status is VideoStatus.PUBLISHED


# ---------------------------------------------------------------------------
# Site configuration
# ---------------------------------------------------------------------------

class PayPalEnvironment(Enum):
    SANDBOX = "sandbox"
    LIVE = "live"


@dataclass
class SiteConfig:
    """Branding and payment settings. Singleton stored as site-config/main."""
    telegram_username: str = DEFAULT_TELEGRAM_USERNAME
    site_name: str = "VipAcess"
    description: str = "Exclusive Premium Content +18"
    paypal_client_id: str = ""
    paypal_environment: PayPalEnvironment = PayPalEnvironment.SANDBOX

    @classmethod
    def factory_default(cls) -> "SiteConfig":
        return cls()

    @property
    def is_factory_default(self) -> bool:
        # the telegram handle is what admins always change first
        return self.telegram_username == DEFAULT_TELEGRAM_USERNAME


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

class UserRole(Enum):
    ADMIN = "admin"
    USER = "user"


@dataclass
class User:
    """
    A site user.

    Passwords are stored and compared in plaintext. This keeps existing
    auth documents readable; see DESIGN.md before changing it.
    """
    email: str
    name: str
    password: str
    role: UserRole = UserRole.USER
    id: str = field(default_factory=lambda: generate_document_id("user"))
    created_at: str = field(default_factory=utc_now_iso)
    last_login: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.email.strip():
            raise DocumentValidationError("User email cannot be empty")
        if not self.password:
            raise DocumentValidationError("User password cannot be empty")

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


def default_admin() -> User:
    return User(
        id="admin_001",
        email=DEFAULT_ADMIN_EMAIL,
        name="Administrator",
        password=DEFAULT_ADMIN_PASSWORD,
        role=UserRole.ADMIN,
    )


@dataclass
class AuthConfig:
    """
    The whole user list plus login policy. Singleton stored as auth/config.

    Always written as a whole document. version is bumped on every write
    and checked against the stored copy to catch lost updates.
    """
    users: list[User] = field(default_factory=list)
    session_timeout: int = 60  # minutes
    max_login_attempts: int = 5
    version: int = 0

    @classmethod
    def with_default_admin(cls) -> "AuthConfig":
        return cls(users=[default_admin()])

    @property
    def admin_count(self) -> int:
        return sum(1 for user in self.users if user.is_admin)

    def find_user(self, user_id: str) -> Optional[User]:
        return next((user for user in self.users if user.id == user_id), None)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PayPalPayment:
    """A checkout attempt. Created at checkout start and never deleted."""
    id: str
    video_id: str
    video_title: str
    amount: float
    currency: str = "USD"
    status: PaymentStatus = PaymentStatus.PENDING
    created_at: str = field(default_factory=utc_now_iso)
    paypal_order_id: Optional[str] = None
    paypal_payer_id: Optional[str] = None
    completed_at: Optional[str] = None

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise DocumentValidationError("Payment amount cannot be negative")
        if not self.currency.strip():
            raise DocumentValidationError("Payment currency cannot be empty")


class ProofStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class PaymentProof:
    """
    A manually uploaded proof of payment, reviewed by the admin.

    The image lives in the content bucket under proof_image_key and is
    deleted together with this document.
    """
    id: str
    amount: float
    video_id: str = ""
    video_title: str = ""
    currency: str = "BRL"
    status: ProofStatus = ProofStatus.PENDING
    uploaded_at: str = field(default_factory=utc_now_iso)
    proof_image_key: Optional[str] = None
    proof_image_url: Optional[str] = None
    approved_at: Optional[str] = None
    rejected_at: Optional[str] = None
    rejection_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise DocumentValidationError("Proof amount cannot be negative")


# ---------------------------------------------------------------------------
# System bootstrap
# ---------------------------------------------------------------------------

@dataclass
class InitializationComponents:
    auth: bool = False
    site_config: bool = False
    metadata: bool = False

    @property
    def all_ready(self) -> bool:
        return self.auth and self.site_config and self.metadata


@dataclass
class InitializationStatus:
    """Progress of the one-time bootstrap. Stored as system/init-status."""
    is_initialized: bool = False
    version: str = SCHEMA_VERSION
    initialized_at: Optional[str] = None
    components: InitializationComponents = field(default_factory=InitializationComponents)
