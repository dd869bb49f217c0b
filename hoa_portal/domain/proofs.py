import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional

ALLOWED_IMAGE_TYPES = ("image/png", "image/jpeg")
MAX_PROOF_BYTES = 5 * 1024 * 1024

PROOF_REQUIRED = "Please upload proof of payment."
PROOF_WRONG_TYPE = "Proof of payment must be a PNG or JPEG image."
PROOF_UNREADABLE = "Proof of payment could not be read as an image."

_DATA_URL = re.compile(r"^data:(?P<type>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)
_SIGNATURES = {
    "image/png": b"\x89PNG\r\n\x1a\n",
    "image/jpeg": b"\xff\xd8\xff",
}
_EXTENSIONS = {"image/png": ".png", "image/jpeg": ".jpg"}


@dataclass(frozen=True)
class ImageUpload:
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return _EXTENSIONS.get(self.content_type, ".bin")

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


def size_limit_message(max_bytes: int = MAX_PROOF_BYTES) -> str:
    return f"File size cannot exceed {max_bytes // (1024 * 1024)}MB."


def image_problem(content_type: Optional[str], size: int, max_bytes: int = MAX_PROOF_BYTES) -> Optional[str]:
    """Return the user-facing reason an upload is refused, or None when acceptable."""
    if size > max_bytes:
        return size_limit_message(max_bytes)
    if content_type not in ALLOWED_IMAGE_TYPES:
        return PROOF_WRONG_TYPE
    return None


def decode_image_data_url(value: str) -> ImageUpload:
    match = _DATA_URL.match(value.strip())
    if not match:
        raise ValueError(PROOF_UNREADABLE)
    try:
        content = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(PROOF_UNREADABLE) from exc
    return ImageUpload(content_type=match.group("type").lower(), content=content)


def matches_signature(upload: ImageUpload) -> bool:
    signature = _SIGNATURES.get(upload.content_type)
    return bool(signature) and upload.content.startswith(signature)
