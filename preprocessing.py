# preprocessing.py
from pathlib import Path

import numpy as np
from PIL import Image

from errors import ImageProcessingError

IMG_SIZE = 224


def image_to_tensor(img: Image.Image, size: int = IMG_SIZE) -> np.ndarray:
    """
    Turn a decoded image into model input: (1, size, size, 3) float32 in [0,1].

    The image is stretched to a square (no aspect ratio kept, no padding),
    read back as RGBA, the alpha channel is dropped and values are divided
    by 255. No mean/std normalization. Fully transparent pixels read as
    black, whether or not the resize touched them.
    """
    img = to_8bit(img)
    rgba = img.convert("RGBA").resize((size, size), Image.BILINEAR)
    pixels = np.asarray(rgba, dtype=np.uint8)   # [size, size, 4]
    rgb = np.where(pixels[:, :, 3:] == 0, 0, pixels[:, :, :3])
    arr = rgb.astype(np.float32) / 255.0
    return np.expand_dims(arr, axis=0)


def to_8bit(img: Image.Image) -> Image.Image:
    # 16-bit greyscale (I;16*, or I from older Pillow); convert() would clip, not rescale
    if img.mode == "I" or img.mode.startswith("I;16"):
        wide = np.asarray(img).astype(np.int64)
        return Image.fromarray(np.clip(wide >> 8, 0, 255).astype(np.uint8))
    return img


def load_image_tensor(path, size: int = IMG_SIZE) -> np.ndarray:
    try:
        with Image.open(Path(path)) as img:
            img.load()
            return image_to_tensor(img, size)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageProcessingError(str(e)) from e
