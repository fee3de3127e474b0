import re
from typing import Tuple

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

_DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?,(?P<data>.*)$", re.DOTALL)


def split_data_uri(value: str) -> Tuple[str, str]:
    """
    Split an uploaded image string into its MIME type and base64 payload.

    Args:
        value (str): A ``data:<mime>;base64,<payload>`` URI or a bare base64 payload.

    Returns:
        tuple[str, str]: ``(mime_type, payload)``. Bare payloads are assumed to be JPEG.
    """
    value = value.strip()
    match = _DATA_URI_PATTERN.match(value)
    if match:
        return match.group("mime") or DEFAULT_IMAGE_MIME_TYPE, match.group("data")

    # Anything with a comma that is not a proper data URI keeps only the trailing chunk
    return DEFAULT_IMAGE_MIME_TYPE, value.split(",")[-1]


def to_data_url(image_b64: str, mime_type: str = DEFAULT_IMAGE_MIME_TYPE) -> str:
    return f"data:{mime_type};base64,{image_b64}"
