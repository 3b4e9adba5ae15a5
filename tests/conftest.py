import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add src to sys.path so we can import photo_sheet
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from photo_sheet.session import PhotoSession  # noqa: E402
from photo_sheet.transform.queue import TransformQueue  # noqa: E402


def png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def make_quadrant_image(width: int = 40, height: int = 30, mode: str = "RGB") -> Image.Image:
    """Image with a distinct colour in each quadrant so orientation is observable."""
    img = Image.new(mode, (width, height))
    half_w, half_h = width // 2, height // 2
    fill = {
        (0, 0): (255, 0, 0),
        (1, 0): (0, 255, 0),
        (0, 1): (0, 0, 255),
        (1, 1): (255, 255, 0),
    }
    for (qx, qy), rgb in fill.items():
        box = (qx * half_w, qy * half_h, width if qx else half_w, height if qy else half_h)
        color = rgb + (255,) if mode == "RGBA" else rgb
        img.paste(color, box)
    return img


# Common test fixtures
@pytest.fixture
def quadrant_image():
    """Opaque 40x30 image with four coloured quadrants."""
    return make_quadrant_image()


@pytest.fixture
def transparent_image():
    """RGBA image, left half transparent, right half opaque red."""
    img = Image.new("RGBA", (20, 10), (0, 0, 0, 0))
    img.paste((255, 0, 0, 255), (10, 0, 20, 10))
    return img


@pytest.fixture
def encode_png():
    """Function encoding a PIL image to PNG bytes."""
    return png_bytes


@pytest.fixture
def quadrant_factory():
    """Function building quadrant images of any size/mode."""
    return make_quadrant_image


@pytest.fixture
def sample_png():
    """Encoded 400x500 PNG (4:5, passport aspect)."""
    return png_bytes(make_quadrant_image(400, 500))


@pytest.fixture
def sync_session():
    """Session whose transform queue runs jobs inline."""
    queue = TransformQueue(max_workers=1)
    queue.disable()
    session = PhotoSession(queue=queue)
    yield session
    session.close()
