"""Image decoding, resizing and WebP encoding helpers."""

import io
import logging
from collections.abc import Iterable
from typing import Any, Dict, Union

from PIL import Image, ImageCms
from PIL.ExifTags import TAGS

from .error_handling import with_error_handling
from .models import DerivativeConfig, DerivativeSpec, ImageMetadata

logger = logging.getLogger(__name__)

WEBP_MODES = ("RGB", "RGBA")
SRGB_PROFILE = ImageCms.ImageCmsProfile(ImageCms.createProfile("sRGB"))
SRGB_ICC_PROFILE = SRGB_PROFILE.tobytes()


def open_image(image_bytes: bytes) -> Image.Image:
    """Decode image bytes fully, so truncated data fails here rather than on save."""
    image = Image.open(io.BytesIO(image_bytes))
    image.load()
    return image


def extract_exif_data(img: Image.Image) -> Dict[str, Any]:
    """
    Extract EXIF tags from a PIL Image, dropping GPS data for privacy.

    Args:
        img: PIL Image to extract EXIF from

    Returns:
        Dictionary of tag name to a JSON-friendly value
    """
    exif_dict: Dict[str, Any] = {}

    for tag_id, value in img.getexif().items():
        tag = TAGS.get(tag_id, tag_id)

        if "gps" in str(tag).lower():
            continue

        processed_value: Union[str, int, float]
        if isinstance(value, bytes):
            try:
                processed_value = value.decode("utf-8")
            except UnicodeDecodeError:
                processed_value = str(value)
        elif isinstance(value, (str, int, float)):
            processed_value = value
        elif isinstance(value, Iterable):
            processed_value = str(value)
        else:
            processed_value = str(value)

        exif_dict[str(tag)] = processed_value

    return exif_dict


@with_error_handling()
def read_metadata(image_bytes: bytes) -> ImageMetadata:
    """Decode source bytes and describe the image."""
    image = open_image(image_bytes)
    return ImageMetadata(
        width=image.width,
        height=image.height,
        format=image.format or "unknown",
        mode=image.mode,
        exif=extract_exif_data(image),
    )


def to_8bit(img: Image.Image) -> Image.Image:
    """
    Scale 16-bit, 32-bit and float greyscale down to 8-bit "L".

    Plain conversion clips every value above 255 to white, so the range is
    mapped instead: 16-bit data is divided by 256, floats in 0..1 are
    multiplied by 255, and anything wider is scaled by its own maximum.
    """
    if img.mode.startswith("I;16"):
        img = img.convert("I")
    elif img.mode not in ("I", "F"):
        return img

    _, high = img.getextrema()
    if img.mode == "F" and high <= 1.0:
        factor = 255.0
    elif high <= 255:
        factor = 1.0
    elif high <= 65535:
        factor = 1 / 256
    else:
        factor = 255.0 / high
    return img.point(lambda v: v * factor).convert("L")


def to_srgb(img: Image.Image) -> Image.Image:
    """
    Convert pixels from an embedded ICC profile to sRGB.

    The result carries the sRGB profile. Images without a profile are
    returned unchanged, as are images whose profile littlecms cannot apply;
    those keep their original profile.
    """
    icc_profile = img.info.get("icc_profile")
    if not icc_profile:
        return img

    if img.mode in WEBP_MODES:
        output_mode = img.mode
    else:
        output_mode = "RGBA" if _has_alpha(img) else "RGB"

    try:
        source_profile = ImageCms.ImageCmsProfile(io.BytesIO(icc_profile))
        converted = ImageCms.profileToProfile(
            img, source_profile, SRGB_PROFILE, outputMode=output_mode
        )
    except (ImageCms.PyCMSError, OSError, ValueError) as e:
        logger.debug(f"Keeping embedded ICC profile, conversion failed: {e}")
        return img

    converted.info["icc_profile"] = SRGB_ICC_PROFILE
    return converted


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info


def to_webp_mode(img: Image.Image) -> Image.Image:
    """Convert to a mode the WebP encoder accepts, keeping transparency."""
    if img.mode in WEBP_MODES:
        return img
    converted = img.convert("RGBA" if _has_alpha(img) else "RGB")
    # A profile for the old colour space no longer describes these pixels.
    converted.info.pop("icc_profile", None)
    return converted


def resize_to_width(img: Image.Image, width: int) -> Image.Image:
    """
    Resize to the given width, preserving aspect ratio.

    Widths above the native width are clamped: a derivative never upscales.
    """
    target_width = min(width, img.width)
    if target_width == img.width:
        return img
    target_height = max(1, round(img.height * target_width / img.width))
    return img.resize((target_width, target_height), Image.Resampling.LANCZOS)


def encode(img: Image.Image, config: DerivativeConfig) -> bytes:
    save_kwargs: Dict[str, Any] = {}
    icc_profile = img.info.get("icc_profile")
    if icc_profile:
        save_kwargs["icc_profile"] = icc_profile

    output_stream = io.BytesIO()
    img.save(
        output_stream,
        format=config.output_format,
        quality=config.quality,
        lossless=config.lossless,
        method=config.method,
        **save_kwargs,
    )
    return output_stream.getvalue()


@with_error_handling()
def prepare_image(image_bytes: bytes) -> Image.Image:
    """
    Decode a source once into an encoder-ready image.

    The result is shared by every derivative of the source: callers resize
    into new images and never modify it in place.
    """
    return to_webp_mode(to_srgb(to_8bit(open_image(image_bytes))))


@with_error_handling()
def render_derivative(
    image: Image.Image, spec: DerivativeSpec, config: DerivativeConfig
) -> bytes:
    """Encode one derivative from an image returned by prepare_image."""
    if not spec.is_original:
        image = resize_to_width(image, int(spec.width))
    return encode(image, config)


def apply_transformation(
    image_bytes: bytes, spec: DerivativeSpec, config: DerivativeConfig
) -> bytes:
    """
    Produce one derivative from source bytes.

    Args:
        image_bytes: Encoded source image
        spec: "original" for a plain re-encode, or a target width
        config: Output encoding settings

    Returns:
        Encoded derivative bytes

    Raises:
        CodecError: If the source cannot be decoded or the derivative cannot be encoded
    """
    return render_derivative(prepare_image(image_bytes), spec, config)
