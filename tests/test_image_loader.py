import cv2
import numpy as np
import pytest

from models.errors import FormatError
from services.image_loader import load_image


def test_load_image_returns_rgb(tmp_path):
    bgr = np.zeros((5, 7, 3), dtype=np.uint8)
    bgr[...] = (255, 0, 0)  # blue in OpenCV order
    path = tmp_path / "blue.png"
    cv2.imwrite(str(path), bgr)

    image = load_image(str(path))

    assert image.shape == (5, 7, 3)
    assert tuple(image[0, 0]) == (0, 0, 255)


def test_load_image_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_image(str(tmp_path / "nope.png"))


def test_load_image_undecodable(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image")
    with pytest.raises(FormatError):
        load_image(str(path))
