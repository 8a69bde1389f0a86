"""
Unit tests for the typed repositories.

Each repository runs over a real MetadataStore and DirectBackend with
in-memory storage, so these also cover the stored JSON shape.
"""

import pytest

from vipaccess.core.documents.errors import (
    ConflictError,
    DocumentNotFoundError,
    DocumentValidationError,
)
from vipaccess.core.documents.keys import DocumentType
from vipaccess.core.documents.models import (
    DEFAULT_ADMIN_EMAIL,
    DEFAULT_ADMIN_PASSWORD,
    PaymentStatus,
    PayPalEnvironment,
    PayPalPayment,
    ProofStatus,
    SiteConfig,
    UserRole,
    VideoMetadata,
    VideoStatus,
)
from vipaccess.infrastructure.metadata.backends import DirectBackend
from vipaccess.infrastructure.metadata.repositories import (
    AuthRepository,
    PaymentProofRepository,
    PayPalPaymentRepository,
    SiteConfigRepository,
)
from vipaccess.infrastructure.metadata.store import MetadataStore
from vipaccess.infrastructure.storage.client import MockStorageClient, StorageError


class FlakyReadStorageClient(MockStorageClient):
    """In-memory storage whose reads can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_reads = False

    async def fetch_signed_url(self, url):
        if self.fail_reads:
            raise StorageError("read timed out")
        return await super().fetch_signed_url(url)


class StaleReadAuthRepository(AuthRepository):
    """Misses the stored config on its first read, as if it lost a creation race."""

    def __init__(self, store):
        super().__init__(store)
        self._stale_reads = 1

    async def load_config(self):
        if self._stale_reads:
            self._stale_reads -= 1
            return None
        return await super().load_config()


# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------

class TestVideoRepository:
    """Tests for the video catalogue."""

    @pytest.mark.anyio
    async def test_save_load_list_delete_scenario(self, videos):
        video = VideoMetadata(id="v1", title="Demo", price=10, status=VideoStatus.DRAFT)

        await videos.save(video)
        loaded = await videos.load("v1")
        listed = await videos.list()
        await videos.delete("v1")

        assert loaded == video
        assert [v.id for v in listed] == ["v1"]
        assert await videos.load("v1") is None

    @pytest.mark.anyio
    async def test_save_stamps_upload_date(self, videos):
        video = VideoMetadata(id="v1", title="Demo")
        await videos.save(video)
        assert (await videos.load("v1")).upload_date is not None

    @pytest.mark.anyio
    async def test_delete_missing_video_succeeds(self, videos):
        assert await videos.delete("never-existed") is True

    @pytest.mark.anyio
    async def test_list_skips_corrupt_document(self, videos, storage, metadata_bucket):
        await videos.save(VideoMetadata(id="a", title="A"))
        await videos.save(VideoMetadata(id="b", title="B"))
        await videos.save(VideoMetadata(id="c", title="C"))
        await storage.put_object(metadata_bucket, "videos/b.json", b'{"id": "b", "tit', "application/json")

        listed = await videos.list()

        assert sorted(v.id for v in listed) == ["a", "c"]

    @pytest.mark.anyio
    async def test_list_skips_invalid_document(self, videos, store):
        await videos.save(VideoMetadata(id="a", title="A"))
        await store.save(DocumentType.VIDEOS, {"id": "b", "title": "", "price": 1}, "b")

        assert [v.id for v in await videos.list()] == ["a"]

    @pytest.mark.anyio
    async def test_list_published_newest_first(self, videos):
        await videos.save(VideoMetadata(id="old", title="Old", status=VideoStatus.PUBLISHED,
                                        upload_date="2024-01-01T00:00:00.000Z"))
        await videos.save(VideoMetadata(id="new", title="New", status=VideoStatus.PUBLISHED,
                                        upload_date="2024-03-01T00:00:00.000Z"))
        await videos.save(VideoMetadata(id="draft", title="Draft"))

        assert [v.id for v in await videos.list_published()] == ["new", "old"]

    @pytest.mark.anyio
    async def test_update_merges_fields(self, videos):
        await videos.save(VideoMetadata(id="v1", title="Demo", price=10, tags=["x"]))

        updated = await videos.update("v1", {"price": 20, "videoUrl": "https://cdn/v1.mp4", "id": "hijack"})

        assert updated.id == "v1"
        assert updated.price == 20
        assert updated.tags == ["x"]
        assert (await videos.load("v1")).video_url == "https://cdn/v1.mp4"
        assert await videos.load("hijack") is None

    @pytest.mark.anyio
    async def test_update_accepts_snake_case_keys(self, videos):
        await videos.save(VideoMetadata(id="v1", title="Demo", video_url="old"))

        updated = await videos.update("v1", {"video_url": "new"})

        assert updated.video_url == "new"

    @pytest.mark.anyio
    async def test_update_missing_returns_none(self, videos):
        assert await videos.update("nope", {"price": 1}) is None

    @pytest.mark.anyio
    async def test_update_rejects_invalid_values(self, videos):
        await videos.save(VideoMetadata(id="v1", title="Demo"))
        with pytest.raises(DocumentValidationError):
            await videos.update("v1", {"price": -5})

    @pytest.mark.anyio
    async def test_increment_views(self, videos):
        await videos.save(VideoMetadata(id="v1", title="Demo"))

        await videos.increment_views("v1")
        video = await videos.increment_views("v1")

        assert video.views == 2
        assert (await videos.load("v1")).views == 2
        assert await videos.increment_views("nope") is None


# ---------------------------------------------------------------------------
# Site config
# ---------------------------------------------------------------------------

class TestSiteConfigRepository:

    @pytest.mark.anyio
    async def test_get_returns_default_when_absent(self, site_config):
        assert await site_config.get() == SiteConfig.factory_default()
        assert await site_config.find() is None

    @pytest.mark.anyio
    async def test_get_returns_default_when_corrupt(self, site_config, storage, metadata_bucket):
        await storage.put_object(metadata_bucket, "site-config/main.json", b"garbage", "application/json")

        assert await site_config.get() == SiteConfig.factory_default()

    @pytest.mark.anyio
    async def test_update_merges_and_persists(self, site_config):
        await site_config.update({"telegramUsername": "vipchannel"})
        updated = await site_config.update({"paypal_environment": "live"})

        stored = await site_config.find()
        assert updated == stored
        assert stored.telegram_username == "vipchannel"
        assert stored.paypal_environment is PayPalEnvironment.LIVE
        assert stored.site_name == "VipAcess"

    @pytest.mark.anyio
    async def test_update_rejects_invalid_values(self, site_config):
        with pytest.raises(DocumentValidationError):
            await site_config.update({"paypalEnvironment": "production"})
        assert await site_config.find() is None

    @pytest.mark.anyio
    async def test_update_propagates_read_failures(self):
        storage = FlakyReadStorageClient()
        repository = SiteConfigRepository(MetadataStore(DirectBackend(storage, "flaky-metadata")))
        await repository.update({"telegramUsername": "custom", "siteName": "Mine"})

        storage.fail_reads = True
        assert await repository.get() == SiteConfig.factory_default()
        with pytest.raises(StorageError):
            await repository.update({"description": "new text"})

        storage.fail_reads = False
        stored = await repository.find()
        assert stored.telegram_username == "custom"
        assert stored.site_name == "Mine"
        assert stored.description == SiteConfig.factory_default().description


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class TestAuthRepository:
    """Tests for the whole-document user list."""

    @pytest.mark.anyio
    async def test_initialize_creates_single_admin(self, auth):
        config = await auth.initialize_if_absent()
        again = await auth.initialize_if_absent()

        assert config.admin_count == 1
        assert again.users == config.users
        assert [u.email for u in await auth.list_users()] == [DEFAULT_ADMIN_EMAIL]

    @pytest.mark.anyio
    async def test_initialize_after_losing_creation_race(self, auth, store):
        winner = await auth.initialize_if_absent()

        result = await StaleReadAuthRepository(store).initialize_if_absent()

        assert [u.id for u in result.users] == [u.id for u in winner.users]
        stored = await auth.load_config()
        assert stored.version == 1
        assert [u.id for u in stored.users] == [u.id for u in winner.users]

    @pytest.mark.anyio
    async def test_verify_credentials_records_last_login(self, auth):
        await auth.initialize_if_absent()

        user = await auth.verify_credentials(DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD)

        assert user is not None
        assert user.last_login is not None
        stored = (await auth.load_config()).find_user(user.id)
        assert stored.last_login == user.last_login

    @pytest.mark.anyio
    @pytest.mark.parametrize("email, password", [
        (DEFAULT_ADMIN_EMAIL, "wrong"),
        ("Admin@gmail.com", DEFAULT_ADMIN_PASSWORD),
        ("nobody@example.com", "x"),
    ])
    async def test_verify_credentials_is_exact(self, auth, email, password):
        await auth.initialize_if_absent()
        assert await auth.verify_credentials(email, password) is None

    @pytest.mark.anyio
    async def test_verify_without_config(self, auth):
        assert await auth.verify_credentials(DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD) is None

    @pytest.mark.anyio
    async def test_add_user_and_reject_duplicates(self, auth):
        await auth.initialize_if_absent()

        user = await auth.add_user("fan@example.com", "Fan", "pw")

        assert user.id.startswith("user_")
        assert user.role is UserRole.USER
        assert len(await auth.list_users()) == 2
        with pytest.raises(DocumentValidationError, match="already exists"):
            await auth.add_user("fan@example.com", "Other", "pw2")

    @pytest.mark.anyio
    async def test_add_user_requires_config(self, auth):
        with pytest.raises(DocumentNotFoundError):
            await auth.add_user("fan@example.com", "Fan", "pw")

    @pytest.mark.anyio
    async def test_update_user_keeps_identity(self, auth):
        await auth.initialize_if_absent()
        user = await auth.add_user("fan@example.com", "Fan", "pw")

        updated = await auth.update_user(user.id, {"name": "Big Fan", "id": "other", "createdAt": "x"})

        assert updated.name == "Big Fan"
        assert updated.id == user.id
        assert updated.created_at == user.created_at

    @pytest.mark.anyio
    async def test_update_unknown_user_returns_none(self, auth):
        await auth.initialize_if_absent()
        assert await auth.update_user("ghost", {"name": "x"}) is None

    @pytest.mark.anyio
    async def test_cannot_demote_last_admin(self, auth):
        await auth.initialize_if_absent()
        with pytest.raises(DocumentValidationError, match="last administrator"):
            await auth.update_user("admin_001", {"role": "user"})

    @pytest.mark.anyio
    async def test_cannot_delete_last_admin(self, auth):
        await auth.initialize_if_absent()
        with pytest.raises(DocumentValidationError, match="last administrator"):
            await auth.delete_user("admin_001")

    @pytest.mark.anyio
    async def test_admin_can_be_deleted_when_another_exists(self, auth):
        await auth.initialize_if_absent()
        await auth.add_user("second@example.com", "Second", "pw", role=UserRole.ADMIN)

        assert await auth.delete_user("admin_001") is True
        assert [u.email for u in await auth.list_users()] == ["second@example.com"]

    @pytest.mark.anyio
    async def test_delete_user_edge_cases(self, auth):
        assert await auth.delete_user("anyone") is False
        await auth.initialize_if_absent()
        assert await auth.delete_user("ghost") is True

    @pytest.mark.anyio
    async def test_stale_write_raises_conflict(self, auth):
        await auth.initialize_if_absent()
        first = await auth.load_config()
        second = await auth.load_config()

        first.session_timeout = 30
        await auth.save_config(first)
        second.max_login_attempts = 3

        with pytest.raises(ConflictError):
            await auth.save_config(second)
        stored = await auth.load_config()
        assert stored.session_timeout == 30
        assert stored.max_login_attempts == 5
        assert stored.version == 2


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

class TestPayPalPaymentRepository:

    @pytest.mark.anyio
    async def test_create_and_get(self, store):
        payments = PayPalPaymentRepository(store)

        payment = await payments.create("v1", "Demo", 10.0)

        assert payment.id.startswith("paypal_")
        assert payment.status is PaymentStatus.PENDING
        assert await payments.get(payment.id) == payment

    @pytest.mark.anyio
    async def test_update_status_completes_payment(self, store):
        payments = PayPalPaymentRepository(store)
        payment = await payments.create("v1", "Demo", 10.0)

        updated = await payments.update_status(
            payment.id, PaymentStatus.COMPLETED, paypal_order_id="ORDER-1", paypal_payer_id="PAYER-1"
        )

        assert updated.completed_at is not None
        assert updated.paypal_order_id == "ORDER-1"
        assert (await payments.get(payment.id)).status is PaymentStatus.COMPLETED

    @pytest.mark.anyio
    async def test_update_status_keeps_provider_ids_when_omitted(self, store):
        payments = PayPalPaymentRepository(store)
        payment = await payments.create("v1", "Demo", 10.0, paypal_order_id="ORDER-1")

        updated = await payments.update_status(payment.id, PaymentStatus.FAILED)

        assert updated.paypal_order_id == "ORDER-1"
        assert updated.completed_at is None

    @pytest.mark.anyio
    async def test_update_missing_payment_raises(self, store):
        with pytest.raises(DocumentNotFoundError):
            await PayPalPaymentRepository(store).update_status("nope", PaymentStatus.COMPLETED)

    @pytest.mark.anyio
    async def test_list_by_video_newest_first(self, store):
        payments = PayPalPaymentRepository(store)
        for payment_id, video_id, created_at in [
            ("p1", "v1", "2024-01-01T00:00:00.000Z"),
            ("p2", "v1", "2024-02-01T00:00:00.000Z"),
            ("p3", "v2", "2024-03-01T00:00:00.000Z"),
        ]:
            await payments.save(PayPalPayment(
                id=payment_id, video_id=video_id, video_title="T", amount=5, created_at=created_at,
            ))

        assert [p.id for p in await payments.list_by_video("v1")] == ["p2", "p1"]
        assert len(await payments.list()) == 3


# ---------------------------------------------------------------------------
# Payment proofs
# ---------------------------------------------------------------------------

class TestPaymentProofRepository:

    @pytest.fixture
    def proofs(self, store, storage, content_bucket) -> PaymentProofRepository:
        return PaymentProofRepository(store, storage, content_bucket)

    @pytest.mark.anyio
    async def test_create_uploads_image_and_records_pending_proof(self, proofs, storage, content_bucket):
        proof = await proofs.create(b"\x89PNG", "receipt 1.png", "image/png", amount=50)

        assert proof.id.startswith("proof_")
        assert proof.status is ProofStatus.PENDING
        assert proof.currency == "BRL"
        assert proof.proof_image_key.startswith("payment-proofs/")
        assert proof.proof_image_key.endswith("_receipt_1.png")
        assert await storage.fetch_signed_url(proof.proof_image_url) == b"\x89PNG"
        assert len(await storage.list_objects(content_bucket, "payment-proofs/")) == 1
        assert await proofs.get(proof.id) == proof

    @pytest.mark.anyio
    async def test_approve_and_reject(self, proofs):
        first = await proofs.create(b"a", "a.png", "image/png", amount=10)
        second = await proofs.create(b"b", "b.png", "image/png", amount=20)

        approved = await proofs.approve(first.id)
        rejected = await proofs.reject(second.id, "blurry")

        assert approved.approved_at is not None
        assert rejected.rejected_at is not None
        assert rejected.rejection_reason == "blurry"
        assert [p.id for p in await proofs.list_approved()] == [first.id]

    @pytest.mark.anyio
    async def test_update_amount(self, proofs):
        proof = await proofs.create(b"a", "a.png", "image/png", amount=10)

        updated = await proofs.update(proof.id, amount=15)

        assert updated.amount == 15
        with pytest.raises(DocumentValidationError):
            await proofs.update(proof.id, amount=-1)

    @pytest.mark.anyio
    async def test_update_missing_proof_raises(self, proofs):
        with pytest.raises(DocumentNotFoundError):
            await proofs.approve("nope")

    @pytest.mark.anyio
    async def test_empty_image_is_rejected(self, proofs):
        with pytest.raises(DocumentValidationError):
            await proofs.create(b"", "a.png", "image/png", amount=10)

    @pytest.mark.anyio
    async def test_delete_removes_image_and_record(self, proofs, storage, content_bucket):
        proof = await proofs.create(b"a", "a.png", "image/png", amount=10)

        assert await proofs.delete(proof.id) is True

        assert await proofs.get(proof.id) is None
        assert await storage.list_objects(content_bucket) == []
        assert await proofs.delete(proof.id) is True
