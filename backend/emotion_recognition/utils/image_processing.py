import base64
import binascii
from typing import Optional

import cv2
import numpy as np

from emotion_recognition.core.logging import get_logger


logger = get_logger(__name__)


def decode_image_bytes(image_bytes: bytes) -> Optional[np.ndarray]:
    """
    Decodes an encoded image (JPEG, PNG, ...) into an OpenCV BGR matrix.

    Returns:
        Optional[np.ndarray]: The decoded image of shape (H, W, 3), or None
                              if the bytes are not an image OpenCV understands.
    """
    if not image_bytes:
        return None

    # Convert bytes to a 1D NumPy array of unsigned 8-bit integers
    np_arr = np.frombuffer(image_bytes, np.uint8)

    # Decode the 1D array into a 3D OpenCV image matrix (H, W, Channels)
    return cv2.imdecode(np_arr, cv2.IMREAD_COLOR)


def strip_data_uri(base64_string: str) -> str:
    """Removes a 'data:image/jpeg;base64,' style header if present."""
    if "," in base64_string:
        return base64_string.split(",", 1)[1]
    return base64_string


def decode_base64_bytes(base64_string: str) -> Optional[bytes]:
    """
    Decodes a Base64 webcam capture into raw encoded bytes.

    Handles standard web-encoded strings that may include data URI schemes
    (e.g., 'data:image/jpeg;base64,...').
    """
    try:
        return base64.b64decode(strip_data_uri(base64_string), validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Failed to decode base64 image payload")
        return None


def image_dimensions(image: np.ndarray) -> tuple:
    """(width, height) of a decoded frame."""
    height, width = image.shape[:2]
    return int(width), int(height)
