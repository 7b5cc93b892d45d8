"""Tests for upload filename normalization."""

import pytest

from solarsite.utils.naming import FALLBACK_STEM, normalize_stem, timestamp_prefix


class TestNormalizeStem:
    """Tests for normalize_stem."""

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("Solar Panel.JPG", "solar-panel"),
            ("roof  install.v2.png", "roof-install.v2"),
            ("inverter", "inverter"),
            ("  Battery\tBank .webp", "battery-bank"),
        ],
    )
    def test_normalizes(self, filename: str, expected: str) -> None:
        assert normalize_stem(filename) == expected

    def test_strips_directories(self) -> None:
        assert normalize_stem("../../etc/passwd") == "passwd"
        assert normalize_stem("C:\\Users\\me\\Desktop\\site photo.jpg") == "site-photo"

    def test_extension_only_falls_back(self) -> None:
        assert normalize_stem(".png") == FALLBACK_STEM

    def test_empty_falls_back(self) -> None:
        assert normalize_stem("") == FALLBACK_STEM


class TestTimestampPrefix:
    """Tests for timestamp_prefix."""

    def test_explicit_timestamp(self) -> None:
        assert timestamp_prefix("solar-panel", now_ms=1700000000123) == "1700000000123-solar-panel"

    def test_uses_current_millis(self) -> None:
        prefix = timestamp_prefix("x")
        millis, _, stem = prefix.partition("-")
        assert stem == "x"
        assert len(millis) == 13
        assert millis.isdigit()
