"""Tests for Pillow-based transcoding."""

from __future__ import annotations

import io

import pytest
from PIL import Image

from solarsite.media.errors import ImageDecodeError, ImageEncodeError
from solarsite.media.transcoder import TranscodeSpec, probe, transcode
from solarsite.models.enums import FitPolicy


def decoded(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


class TestProbe:
    """Tests for probe."""

    def test_dimensions(self, make_image) -> None:
        assert probe(make_image(200, 150)) == (200, 150)

    def test_not_an_image(self) -> None:
        with pytest.raises(ImageDecodeError):
            probe(b"not an image")

    def test_empty(self) -> None:
        with pytest.raises(ImageDecodeError, match="Empty"):
            probe(b"")

    def test_truncated(self, make_image) -> None:
        data = make_image(400, 300, "PNG")
        with pytest.raises(ImageDecodeError):
            probe(data[: len(data) // 2])

    def test_exif_orientation_applied(self) -> None:
        img = Image.new("RGB", (200, 100), color="blue")
        exif = Image.Exif()
        exif[0x0112] = 6  # Rotate 90° CW on display
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", exif=exif)

        assert probe(buffer.getvalue()) == (100, 200)


class TestTranscode:
    """Tests for transcode."""

    def test_original_keeps_size_and_converts_to_webp(self, make_image) -> None:
        out = transcode(make_image(640, 480, "PNG"), TranscodeSpec(quality=90))

        assert (out.width, out.height) == (640, 480)
        assert out.mime_type == "image/webp"
        assert out.byte_size == len(out.data)
        img = decoded(out.data)
        assert img.format == "WEBP"
        assert img.size == (640, 480)

    def test_format_ignores_input_format(self, make_image) -> None:
        for fmt in ("JPEG", "PNG", "GIF", "BMP"):
            out = transcode(make_image(50, 40, fmt), TranscodeSpec())
            assert decoded(out.data).format == "WEBP"

    def test_shrink_keeps_aspect_ratio(self, make_image) -> None:
        spec = TranscodeSpec(width=1200, fit=FitPolicy.SHRINK, quality=80)
        out = transcode(make_image(2000, 1500), spec)

        assert (out.width, out.height) == (1200, 900)
        assert decoded(out.data).size == (1200, 900)

    def test_shrink_never_enlarges(self, make_image) -> None:
        spec = TranscodeSpec(width=800, fit=FitPolicy.SHRINK)
        out = transcode(make_image(300, 200), spec)

        assert (out.width, out.height) == (300, 200)

    def test_shrink_minimum_height(self, make_image) -> None:
        spec = TranscodeSpec(width=100, fit=FitPolicy.SHRINK)
        out = transcode(make_image(4000, 10), spec)

        assert (out.width, out.height) == (100, 1)

    def test_cover_crops_to_box(self, make_image) -> None:
        spec = TranscodeSpec(width=150, height=150, fit=FitPolicy.COVER)
        out = transcode(make_image(2000, 1500), spec)

        assert (out.width, out.height) == (150, 150)

    def test_cover_enlarges_small_sources(self, make_image) -> None:
        spec = TranscodeSpec(width=150, height=150, fit=FitPolicy.COVER)
        out = transcode(make_image(100, 100, "PNG"), spec)

        assert decoded(out.data).size == (150, 150)

    def test_alpha_preserved(self, make_image) -> None:
        data = make_image(64, 64, "PNG", mode="RGBA", color=(255, 0, 0, 128))
        out = transcode(data, TranscodeSpec())

        assert decoded(out.data).mode == "RGBA"

    def test_palette_and_grayscale_inputs(self, make_image) -> None:
        for mode in ("P", "L", "1"):
            out = transcode(make_image(32, 32, "PNG", mode=mode, color=0), TranscodeSpec())
            assert decoded(out.data).format == "WEBP"

    def test_cmyk_input(self, make_image) -> None:
        data = make_image(32, 32, "JPEG", mode="CMYK", color=(0, 255, 255, 0))
        out = transcode(data, TranscodeSpec())

        assert decoded(out.data).mode == "RGB"

    def test_lower_quality_is_smaller(self) -> None:
        # Noisy image so quality actually matters
        img = Image.effect_noise((400, 400), 64).convert("RGB")
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        data = buffer.getvalue()

        high = transcode(data, TranscodeSpec(quality=90))
        low = transcode(data, TranscodeSpec(quality=40))

        assert low.byte_size < high.byte_size

    def test_decode_error(self) -> None:
        with pytest.raises(ImageDecodeError):
            transcode(b"\x00" * 10, TranscodeSpec())

    @pytest.mark.filterwarnings("ignore::PIL.Image.DecompressionBombWarning")
    def test_rejects_images_over_pixel_limit(
        self, make_image, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # 100x100 sits between the limit and the 2x hard-error threshold
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 6000)

        with pytest.raises(ImageDecodeError, match="exceeds 6000 pixels"):
            probe(make_image(100, 100))

    def test_rejects_decompression_bombs(self, make_image, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

        with pytest.raises(ImageDecodeError, match="too large"):
            transcode(make_image(100, 100), TranscodeSpec())

    def test_unsupported_output_format(self, make_image) -> None:
        with pytest.raises(ImageEncodeError):
            transcode(make_image(), TranscodeSpec(format="TGA"))

    def test_cover_requires_box(self, make_image) -> None:
        with pytest.raises(ValueError):
            transcode(make_image(), TranscodeSpec(width=150, fit=FitPolicy.COVER))
