"""
Shared fixtures for the Detectoo test suite.
"""
import io
from itertools import cycle

import numpy as np
import pytest
from PIL import Image


class SequenceRandom:
    """Deterministic random source cycling through fixed values."""

    def __init__(self, values):
        self._values = cycle(values)
        self.calls = 0

    def random(self):
        self.calls += 1
        return next(self._values)


class FakeUpload(io.BytesIO):
    """Mimics the parts of Streamlit's UploadedFile used by the app."""

    def __init__(self, data: bytes, name: str, mime_type: str, file_id: str = "upload-1"):
        super().__init__(data)
        self.name = name
        self.type = mime_type
        self.size = len(data)
        self.file_id = file_id


def solid_image(width, height, color=(128, 128, 128, 255)):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :] = color
    return pixels


def noisy_image(width, height):
    """Image whose pixels cycle through pure red, green and blue."""
    palette = np.array([(255, 0, 0, 255), (0, 255, 0, 255), (0, 0, 255, 255)], dtype=np.uint8)
    index = (np.arange(height)[:, None] + np.arange(width)[None, :]) % 3
    return palette[index]


def png_bytes(pixels):
    buffer = io.BytesIO()
    Image.fromarray(pixels).save(buffer, format='PNG')
    return buffer.getvalue()


@pytest.fixture
def gray_upload():
    data = png_bytes(solid_image(160, 160))
    return FakeUpload(data, "gray.png", "image/png")


@pytest.fixture
def text_upload():
    return FakeUpload(b"just some notes", "notes.txt", "text/plain", file_id="upload-2")
