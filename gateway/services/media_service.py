from typing import Optional

ANALYZABLE_CONTENT_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/gif",
        "image/heic",
        "image/heif",
        "application/pdf",
    }
)


def normalize_content_type(content_type: Optional[str]) -> str:
    """Drop MIME parameters and lowercase: "Image/JPEG; charset=binary" -> "image/jpeg"."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_analyzable(content_type: Optional[str]) -> bool:
    return normalize_content_type(content_type) in ANALYZABLE_CONTENT_TYPES
