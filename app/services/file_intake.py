"""
Payment screenshot intake

Checks an uploaded file's media type and size, then persists it either to
the uploads directory (disk mode) or as an inline attachment (inline mode).
"""
import logging
import random
import time
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from app.core.exceptions import FileTooLargeError, StorageError, UnsupportedMediaTypeError
from app.models import InlineAttachment, PaymentScreenshot, ReceivedFile, UploadSettings


logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


def is_allowed_media_type(content_type: Optional[str]) -> bool:
    """Images of any kind and PDFs are accepted"""
    if not content_type:
        return False
    return content_type.startswith("image/") or content_type == PDF_MEDIA_TYPE


def unique_filename(field_name: str, original_name: str) -> str:
    """paymentScreenshot-<epoch ms>-<random><original extension>"""
    suffix = Path(original_name or "").suffix
    unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{field_name}-{unique}{suffix}"


class FileIntake:
    """Receives one upload per submission and stores it by policy"""

    def __init__(self, settings: UploadSettings):
        self.mode = settings.mode
        self.max_bytes = settings.max_bytes
        self.field_name = settings.field_name
        self.directory = Path(settings.directory)
        if self.mode == "disk":
            self.directory.mkdir(parents=True, exist_ok=True)

    async def receive(self, upload: UploadFile) -> ReceivedFile:
        """
        Read and check an uploaded file

        Raises:
            UnsupportedMediaTypeError: Not an image or PDF
            FileTooLargeError: Larger than max_bytes
        """
        if not is_allowed_media_type(upload.content_type):
            raise UnsupportedMediaTypeError(error=f"Received {upload.content_type}")

        # One extra byte is enough to know the limit was exceeded
        data = await upload.read(self.max_bytes + 1)
        if len(data) > self.max_bytes:
            raise FileTooLargeError()

        return ReceivedFile(
            field_name=self.field_name,
            filename=upload.filename or "",
            content_type=upload.content_type,
            data=data,
        )

    def store(self, received: ReceivedFile) -> PaymentScreenshot:
        """Persist an accepted file; returns the reference saved on the record"""
        if self.mode == "inline":
            return InlineAttachment(
                data=received.data,
                content_type=received.content_type,
                filename=received.filename,
                size=received.size,
            )

        filename = unique_filename(received.field_name, received.filename)
        path = self.directory / filename
        try:
            path.write_bytes(received.data)
        except OSError as e:
            raise StorageError("Error saving payment screenshot", error=str(e)) from e
        logger.info(f"📁 Saved {received.size} bytes to {path}")
        return filename

    def discard(self, reference: PaymentScreenshot) -> None:
        """Remove a stored file whose registration was never saved"""
        if not isinstance(reference, str):
            return
        path = self.directory / reference
        try:
            path.unlink()
            logger.info(f"🗑️  Removed orphaned upload {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"⚠️  Could not remove orphaned upload {path}: {e}")
