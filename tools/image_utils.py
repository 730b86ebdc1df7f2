"""
image_utils.py — Catch Photo Encoding
--------------------------------------

Re-encodes an uploaded photo the way the mobile app does before calling
`/detect-species`: JPEG at 90% quality, base64, wrapped in a data URL.

Dependencies:
- Pillow
"""

import base64
from io import BytesIO

from PIL import Image, ImageOps

JPEG_QUALITY = 90


def encode_image_as_data_url(fp, quality: int = JPEG_QUALITY) -> str:
    """
    Args:
        fp: path or binary file-like object (e.g. a Streamlit upload)
        quality (int): JPEG quality

    Returns:
        str: "data:image/jpeg;base64,..."
    """
    with Image.open(fp) as img:
        img = ImageOps.exif_transpose(img).convert("RGB")
        buffer = BytesIO()
        img.save(buffer, format="JPEG", quality=quality)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"
