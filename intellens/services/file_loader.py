import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional, Union

from intellens.core.config import SUPPORTED_MIME_TYPES, AnalysisConfig
from intellens.core.errors import FileReadError
from intellens.core.types import DocumentInput

logger = logging.getLogger(__name__)


def detect_mime_type(path: Path) -> Optional[str]:
    """Guess the MIME type from the file name."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type


def encode_document(content: bytes, mime_type: str, file_name: Optional[str] = None) -> DocumentInput:
    """Base64-encode raw file bytes into a DocumentInput.

    Raises:
        FileReadError: If the content is empty or the MIME type is not supported
    """
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise FileReadError(f"Unsupported file type: {mime_type or 'unknown'}")
    if not content:
        raise FileReadError(f"File is empty: {file_name or '<upload>'}")
    return DocumentInput(
        data=base64.b64encode(content).decode("ascii"),
        mime_type=mime_type,
        file_name=file_name,
    )


def load_document(path: Union[str, Path], max_bytes: Optional[int] = None) -> DocumentInput:
    """Read a PDF or plain-text file from disk and encode it for the analysis backend.

    Args:
        path: File to read
        max_bytes: Size cap; defaults to the configured upload limit

    Returns:
        DocumentInput holding the base64 payload and MIME type

    Raises:
        FileReadError: If the file is missing, unreadable, too large or of an unsupported type
    """
    path = Path(path)
    max_bytes = max_bytes if max_bytes is not None else AnalysisConfig().max_upload_bytes

    mime_type = detect_mime_type(path)
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise FileReadError(f"Unsupported file type: {mime_type or 'unknown'}")

    try:
        size = path.stat().st_size
        if size > max_bytes:
            raise FileReadError(
                f"File too large: {size} bytes exceeds the {max_bytes // (1024 * 1024)}MB limit"
            )
        content = path.read_bytes()
    except OSError as e:
        logger.warning("Failed to read %s: %s", path, e)
        raise FileReadError(f"Could not read file {path.name}: {e}") from e

    document = encode_document(content, mime_type, file_name=path.name)
    logger.debug("Loaded document", extra={"file_name": path.name, "mime_type": mime_type, "bytes": size})
    return document
