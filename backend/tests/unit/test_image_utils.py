"""
Unit tests for image utilities.
"""

import base64
import io

import pytest
from PIL import Image

from book_scanner.exceptions import DecodeError
from book_scanner.pipelines.utils.image_utils import (
    base64_to_image,
    encode_image,
    image_to_base64,
    load_image,
    resize_for_api,
)


class TestImageUtils:
    """Tests for image utility functions."""

    def test_image_to_base64(self, sample_image):
        """Test converting image to base64."""
        b64 = image_to_base64(sample_image)

        assert isinstance(b64, str)
        decoded = base64.b64decode(b64)
        assert len(decoded) > 0

    def test_base64_round_trip(self, sample_image):
        """Test that base64_to_image reverses image_to_base64."""
        restored = base64_to_image(image_to_base64(sample_image, format="PNG"))

        assert restored.size == sample_image.size
        assert restored.getpixel((10, 10)) == (255, 0, 0)

    def test_resize_for_api_no_resize_needed(self, sample_image):
        """Test that small images aren't resized."""
        resized = resize_for_api(sample_image, max_dimension=500)

        assert resized.size == (100, 80)

    def test_resize_for_api_resize_needed(self):
        """Test that large images are resized."""
        large_img = Image.new("RGB", (4000, 3000), color="blue")
        resized = resize_for_api(large_img, max_dimension=2048)

        assert resized.size == (2048, 1536)

    def test_load_image_from_bytes(self, sample_png_bytes):
        """Test decoding raw bytes."""
        image = load_image(sample_png_bytes)

        assert image.size == (100, 80)

    def test_load_image_from_path(self, sample_image, tmp_path):
        """Test decoding a file path."""
        path = tmp_path / "cover.png"
        sample_image.save(path, format="PNG")

        image = load_image(path)

        assert image.size == (100, 80)

    def test_load_image_empty_bytes(self):
        """Test that empty input is a decode error."""
        with pytest.raises(DecodeError):
            load_image(b"")

    def test_load_image_garbage(self):
        """Test that non-image bytes are a decode error."""
        with pytest.raises(DecodeError) as exc_info:
            load_image(b"definitely not an image")

        assert exc_info.value.error_code == "decode_error"
        assert exc_info.value.status_code == 422


class TestEncodeImage:
    """Tests for the cover image encoder."""

    def test_output_is_jpeg(self, sample_png_bytes):
        """Test that any decodable input comes out as a JPEG payload."""
        payload = encode_image(sample_png_bytes)

        raw = base64.b64decode(payload)
        assert raw[:3] == b"\xff\xd8\xff"
        assert base64_to_image(payload).format == "JPEG"

    def test_preserves_dimensions(self, sample_image):
        """Test that encoding does not resize by default."""
        payload = encode_image(sample_image)

        assert base64_to_image(payload).size == (100, 80)

    def test_alpha_is_flattened(self):
        """Test that RGBA images are converted to RGB."""
        buffer = io.BytesIO()
        Image.new("RGBA", (40, 40), color=(0, 0, 255, 128)).save(buffer, format="PNG")

        payload = encode_image(buffer.getvalue())

        assert base64_to_image(payload).mode == "RGB"

    def test_max_dimension(self):
        """Test bounding the longest side."""
        image = Image.new("RGB", (1000, 500), color="green")

        payload = encode_image(image, max_dimension=200)

        assert base64_to_image(payload).size == (200, 100)

    def test_no_data_url_prefix(self, sample_image):
        """Test that the payload is bare base64."""
        payload = encode_image(sample_image)

        assert not payload.startswith("data:")

    def test_file_object(self, sample_png_bytes):
        """Test encoding from a binary file object."""
        payload = encode_image(io.BytesIO(sample_png_bytes))

        assert base64_to_image(payload).size == (100, 80)

    def test_garbage(self):
        """Test that unreadable input is a decode error."""
        with pytest.raises(DecodeError):
            encode_image(b"definitely not an image")

    def test_decompression_bomb(self, sample_png_bytes, monkeypatch):
        """Test that oversized images are a decode error."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

        with pytest.raises(DecodeError):
            encode_image(sample_png_bytes)
