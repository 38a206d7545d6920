import io

import numpy as np
import pytest
from PIL import Image

from config import ServiceConfig


def png_bytes(size=(500, 500), color=(255, 255, 255), mode="RGB") -> bytes:
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def config(tmp_path):
    return ServiceConfig(root=tmp_path)


@pytest.fixture
def white_png():
    return png_bytes()


@pytest.fixture
def noise_png():
    rng = np.random.default_rng(0)
    pixels = rng.integers(0, 256, size=(40, 60, 3), dtype=np.uint8)
    buf = io.BytesIO()
    Image.fromarray(pixels).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def make_png():
    return png_bytes
