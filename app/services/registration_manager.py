"""
Registration lifecycle - create, read and status updates
"""
import logging
import uuid
from typing import Any, Callable, Dict, List, Tuple

from app.core.exceptions import (
    AttachmentNotFoundError,
    DuplicateRegistrationError,
    InvalidStatusError,
    RegistrationNotFoundError,
    StorageError,
)
from app.models import PaymentScreenshot, Registration, ValidatedSubmission
from app.services.storage import RegistrationStore
from app.utils import utc_now_iso


logger = logging.getLogger(__name__)

ENTRY_FEE_PER_MEMBER = 50
DEFAULT_STATUS = "pending"
STATUSES = ("pending", "approved", "rejected")
ID_SEQUENCE_NAME = "registration_id"


def compute_entry_fee(team_size: int) -> int:
    return team_size * ENTRY_FEE_PER_MEMBER


def format_sequential_id(number: int) -> str:
    """1 -> REG-0001"""
    return f"REG-{number:04d}"


def public_view(document: Dict[str, Any]) -> Dict[str, Any]:
    """Strip store internals and replace inline file bytes with a descriptor"""
    view = {k: v for k, v in document.items() if k != "_id"}
    screenshot = view.get("paymentScreenshot")
    if isinstance(screenshot, dict) and "data" in screenshot:
        view["paymentScreenshot"] = {
            "filename": screenshot.get("filename"),
            "contentType": screenshot.get("contentType"),
            "size": screenshot.get("size"),
            "inline": True,
        }
    return view


class RegistrationManager:
    """
    Turns validated submissions into stored registrations and manages their status

    Args:
        store: Storage adapter (durable or ephemeral)
        id_policy: "sequential" (REG-0001, counter persisted in the store) or
                   "random" (UUID4 hex)
        clock: Returns the current timestamp string
    """

    def __init__(
        self,
        store: RegistrationStore,
        id_policy: str = "sequential",
        clock: Callable[[], str] = utc_now_iso,
    ):
        if id_policy not in ("sequential", "random"):
            raise ValueError(f"Unknown id policy: {id_policy}")
        self.store = store
        self.id_policy = id_policy
        self.clock = clock

    async def _next_id(self) -> str:
        if self.id_policy == "random":
            return uuid.uuid4().hex
        number = await self.store.next_sequence(ID_SEQUENCE_NAME)
        return format_sequential_id(number)

    async def create(self, submission: ValidatedSubmission, payment_screenshot: PaymentScreenshot) -> Dict[str, Any]:
        """
        Build and persist a new registration

        Returns:
            Public view of the stored record

        Raises:
            StorageError: If the store rejects the write
        """
        size = submission.team_size
        registration = Registration(
            id=await self._next_id(),
            team_name=submission.team_name,
            team_size=size,
            participants=submission.participants[:size],
            portfolio_url=submission.portfolio_url,
            payment_screenshot=payment_screenshot,
            entry_fee=compute_entry_fee(size),
            registration_date=self.clock(),
            status=DEFAULT_STATUS,
            email_sent=False,
        )
        document = registration.model_dump(by_alias=True, exclude_none=True)

        try:
            await self.store.insert(document)
        except DuplicateRegistrationError as e:
            logger.error(f"❌ Duplicate registration id {registration.id}")
            raise StorageError("Error saving registration", error=e.error) from e

        logger.info(
            f"✅ Registered {registration.id} | Team: {registration.team_name} | "
            f"Size: {size} | Fee: {registration.entry_fee}"
        )
        return public_view(document)

    async def get_all(self) -> List[Dict[str, Any]]:
        """All registrations in store order (no sort is applied)"""
        documents = await self.store.find_all()
        return [public_view(doc) for doc in documents]

    async def get_by_id(self, registration_id: str) -> Dict[str, Any]:
        document = await self.store.find_one(registration_id)
        if document is None:
            raise RegistrationNotFoundError()
        return public_view(document)

    async def update_status(self, registration_id: str, status: Any) -> Dict[str, Any]:
        """
        Set a registration's status and refresh updatedAt

        Only pending/approved/rejected are accepted. Unknown ids and invalid
        statuses leave the store untouched; an unknown id is reported as not
        found before the status value is looked at.
        """
        if await self.store.find_one(registration_id) is None:
            raise RegistrationNotFoundError()

        if not isinstance(status, str) or not status.strip():
            raise InvalidStatusError("Status is required")
        status = status.strip().lower()
        if status not in STATUSES:
            raise InvalidStatusError(f"Invalid status. Must be one of: {', '.join(STATUSES)}")

        document = await self.store.update_fields(
            registration_id,
            {"status": status, "updatedAt": self.clock()},
        )
        if document is None:
            raise RegistrationNotFoundError()

        logger.info(f"✏️  {registration_id} status -> {status}")
        return public_view(document)

    async def fetch_payment_attachment(self, registration_id: str) -> Tuple[bytes, str]:
        """
        Return (bytes, media type) of an inline payment screenshot

        Raises:
            AttachmentNotFoundError: Record missing or file not stored inline
        """
        document = await self.store.find_one(registration_id)
        if document is None:
            raise AttachmentNotFoundError("Registration not found")

        screenshot = document.get("paymentScreenshot")
        if not isinstance(screenshot, dict) or screenshot.get("data") is None:
            raise AttachmentNotFoundError()
        return bytes(screenshot["data"]), screenshot.get("contentType") or "application/octet-stream"
