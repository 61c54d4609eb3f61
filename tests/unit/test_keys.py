"""Tests for key decoding, extension filtering and derivative naming."""

import pytest

from webp_derivatives.core.exceptions import UnsupportedTypeError
from webp_derivatives.core.keys import (
    decode_event_key,
    derive_key,
    derive_original_key,
    derive_resized_key,
    ensure_supported,
    file_extension,
    is_supported,
    strip_extension,
)
from webp_derivatives.core.models import DerivativeSpec


class TestIsSupported:
    """Tests for the extension filter."""

    @pytest.mark.parametrize(
        "key",
        [
            "photo.jpg",
            "photo.jpeg",
            "photo.png",
            "photo.webp",
            "photo.gif",
            "photo.tiff",
            "PHOTO.JPG",
            "uploads/Holiday.PnG",
            "a.b.jpg",
            "dir.with.dots/img.gif",
        ],
    )
    def test_supported_keys(self, key):
        assert is_supported(key) is True

    @pytest.mark.parametrize(
        "key",
        [
            "notes.txt",
            "README",
            "image.tif",
            "photo.jpg.zip",
            "photo.jpg/",
            "archive.",
        ],
    )
    def test_unsupported_keys(self, key):
        assert is_supported(key) is False

    def test_key_without_dot_uses_whole_key(self):
        """A dotless key is its own extension."""
        assert file_extension("uploads/README") == "uploads/readme"
        assert is_supported("jpg") is True

    def test_only_final_segment_governs(self):
        assert file_extension("a.png.JPG") == "jpg"

    def test_custom_extension_set(self):
        assert is_supported("scan.bmp", (".bmp",)) is True
        assert is_supported("scan.jpg", (".bmp",)) is False

    def test_ensure_supported_raises(self):
        with pytest.raises(UnsupportedTypeError, match="txt"):
            ensure_supported("notes.txt")

        ensure_supported("photo.jpg")


class TestDerivedKeys:
    """Tests for derivative key naming."""

    def test_strip_extension_uses_first_dot(self):
        assert strip_extension("photos/a.b.jpg") == "photos/a"
        assert strip_extension("photos/a.jpg") == "photos/a"
        assert strip_extension("no-extension") == "no-extension"

    def test_derive_original_key(self):
        assert derive_original_key("photos/a.b.jpg") == "photos/a-original.webp"
        assert derive_original_key("cat.png") == "cat-original.webp"

    def test_derive_resized_key(self):
        assert derive_resized_key("photos/a.b.jpg", 640) == "photos/a-640.webp"
        assert derive_resized_key("cat.png", 3840) == "cat-3840.webp"

    def test_dotted_directory_truncates_key(self):
        """Dots in directory names still cut the key at the first dot."""
        assert derive_original_key("site.v2/img/cat.jpg") == "site-original.webp"

    def test_derive_key_dispatch(self):
        assert derive_key("x/y.jpg", DerivativeSpec(width="original")) == "x/y-original.webp"
        assert derive_key("x/y.jpg", DerivativeSpec(width=256)) == "x/y-256.webp"

    def test_derived_keys_are_deterministic(self):
        assert derive_resized_key("a.jpg", 1080) == derive_resized_key("a.jpg", 1080)


class TestDecodeEventKey:
    """Tests for S3 notification key decoding."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("uploads/my+photo.jpg", "uploads/my photo.jpg"),
            ("uploads/caf%C3%A9.png", "uploads/café.png"),
            ("a%2Bb.jpg", "a+b.jpg"),
            ("photo%281%29.jpeg", "photo(1).jpeg"),
            ("plain/key.gif", "plain/key.gif"),
        ],
    )
    def test_decode(self, raw, expected):
        assert decode_event_key(raw) == expected
