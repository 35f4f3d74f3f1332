import io
import numpy as np
import tensorflow as tf
from PIL import Image
from .. import config
from ..exceptions import DecodeError

IMAGE_SIZE = (224, 224)


def check_dimensions(image_bytes: bytes):
    """Read width and height from the image header and refuse oversized images before decoding."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            width, height = img.size
    except (OSError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Invalid image: {e}") from e
    if width * height > config.MAX_IMAGE_PIXELS:
        raise DecodeError(f"Invalid image: {width}x{height} exceeds {config.MAX_IMAGE_PIXELS} pixels")
    return width, height


def decode_image(image_bytes: bytes) -> tf.Tensor:
    """Decode JPEG or PNG bytes into a uint8 [H, W, 3] tensor."""
    try:
        return tf.io.decode_image(image_bytes, channels=3, expand_animations=False)
    except tf.errors.OpError as e:
        raise DecodeError(f"Invalid image: {e.message}") from e


def preprocess(file_path: str) -> np.ndarray:
    """Turn a stored upload into the model input, shape [1, 224, 224, 3] float32.

    Nearest-neighbour resize uses the legacy sampling (no corner alignment,
    no half-pixel centres) and pixel values are not rescaled.
    """
    try:
        with open(file_path, "rb") as f:
            image_bytes = f.read()
    except OSError as e:
        raise DecodeError(f"Cannot read uploaded file: {e}") from e

    check_dimensions(image_bytes)
    image = decode_image(image_bytes)
    batch = tf.expand_dims(image, axis=0)
    resized = tf.compat.v1.image.resize_nearest_neighbor(
        batch, IMAGE_SIZE, align_corners=False, half_pixel_centers=False
    )
    return tf.cast(resized, tf.float32).numpy()
