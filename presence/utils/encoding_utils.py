import base64
import binascii
import io
import re
from typing import Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from presence.errors import InvalidImageError

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)

# -----------------------------
# DATA URL UTILITIES
# -----------------------------

def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Splits a data URL (what canvas.toDataURL() produces) into its MIME type
    and raw bytes. Raises InvalidImageError when the string is not a
    base64 data URL.
    """
    match = _DATA_URL.match(data_url or "")
    if not match or not match.group("b64"):
        raise InvalidImageError()
    try:
        raw = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError() from e
    return match.group("mime") or "application/octet-stream", raw


def load_image_array(data_url: str) -> np.ndarray:
    """Decodes an image data URL into an RGB uint8 array of shape (H, W, 3)."""
    _, raw = decode_data_url(data_url)
    try:
        with Image.open(io.BytesIO(raw)) as img:
            return np.asarray(img.convert("RGB"), dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError() from e


def is_image_data_url(data_url: str) -> bool:
    try:
        mime, _ = decode_data_url(data_url)
    except InvalidImageError:
        return False
    return mime.startswith("image/")

# -----------------------------
# ENCODING UTILITIES
# -----------------------------

def normalize_encodings(vectors: np.ndarray) -> np.ndarray:
    """L2-normalises embeddings; accepts a single vector or an (N, D) matrix."""
    vectors = np.asarray(vectors, dtype=np.float32)
    if vectors.size == 0:
        return vectors
    if vectors.ndim == 1:
        norm = np.linalg.norm(vectors)
        return vectors / norm if norm else vectors
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    norms[norms == 0] = 1
    return vectors / norms
