"""Tests for screenshot validation and PNG conversion."""

from io import BytesIO

from PIL import Image

from web.image_utils import prepare_screenshot


def _open(png_data):
    img = Image.open(BytesIO(png_data))
    img.load()
    return img


class TestPrepareScreenshot:
    """Test prepare_screenshot()."""

    def test_no_content(self):
        assert prepare_screenshot(b"") == (None, None, None)
        assert prepare_screenshot(None) == (None, None, None)

    def test_jpeg_becomes_png(self, jpeg_bytes):
        png_data, mime_type, error = prepare_screenshot(jpeg_bytes)
        assert error is None
        assert mime_type == "image/png"
        img = _open(png_data)
        assert img.format == "PNG"
        assert img.mode == "RGB"
        assert img.size == (8, 8)

    def test_transparency_flattened_on_white(self, rgba_png_bytes):
        png_data, _, error = prepare_screenshot(rgba_png_bytes)
        assert error is None
        img = _open(png_data)
        assert img.mode == "RGB"
        assert img.getpixel((0, 0)) == (255, 255, 255)

    def test_opaque_colours_kept(self, png_bytes):
        png_data, _, _ = prepare_screenshot(png_bytes)
        assert _open(png_data).getpixel((4, 4)) == (200, 30, 30)

    def test_too_large(self, monkeypatch, png_bytes):
        monkeypatch.setattr("web.image_utils.MAX_IMAGE_SIZE", 10)
        png_data, mime_type, error = prepare_screenshot(png_bytes)
        assert png_data is None and mime_type is None
        assert error.startswith("Image too large (")
        assert error.endswith("Please use an image smaller than 5MB.")

    def test_unreadable_image_is_logged(self, isolated_interaction_log):
        png_data, _, error = prepare_screenshot(b"not an image at all")
        assert png_data is None
        assert error == "Could not read the uploaded image. Please upload a PNG, JPEG, WEBP or HEIC screenshot."
        assert '"event_type": "image_processing_error"' in isolated_interaction_log.read_text(encoding="utf-8")
