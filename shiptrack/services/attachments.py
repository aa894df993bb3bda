"""
Attachment helpers - base64 blobs from forms and PDF checks
"""
from typing import Optional
import base64
import binascii
import io
import logging

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from shiptrack.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def decode_blob(value: Optional[str], field: str) -> Optional[bytes]:
    """
    Decode a base64 string or ``data:<mime>;base64,<payload>`` URL as sent
    by the signature pad and file inputs. Empty input gives None.
    """
    if value is None or value == "":
        return None
    payload = value.split(",", 1)[1] if value.startswith("data:") else value
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"{field} is not valid base64 data", missing_fields=[field]) from e


def encode_blob(value: Optional[bytes]) -> Optional[str]:
    if value is None:
        return None
    return base64.b64encode(value).decode("ascii")


def validate_pdf(content: bytes, max_bytes: int) -> int:
    """Reject anything that is not a readable PDF within the size limit; returns the page count"""
    if len(content) > max_bytes:
        raise ValidationError(
            f"File size should be less than {max_bytes // (1024 * 1024)}MB",
            missing_fields=["attachment"],
        )
    try:
        reader = PdfReader(io.BytesIO(content))
        pages = len(reader.pages)
    except (PdfReadError, ValueError, OSError) as e:
        logger.warning(f"Rejected attachment that is not a PDF: {e}")
        raise ValidationError("Please upload only PDF files", missing_fields=["attachment"]) from e
    if pages == 0:
        raise ValidationError("Attached PDF has no pages", missing_fields=["attachment"])
    return pages
