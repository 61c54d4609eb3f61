"""Derivative size planning."""

from typing import Iterable, List

from .models import DEFAULT_WIDTHS, ORIGINAL, DerivativeSpec


def plan_widths(source_width: int, catalog: Iterable[int] = DEFAULT_WIDTHS) -> List[int]:
    """
    Select the catalog widths a source image can be downscaled to.

    Args:
        source_width: Native width of the source image in pixels
        catalog: Candidate widths in ascending order

    Returns:
        Catalog widths <= source_width, in catalog order. Empty when the
        source is narrower than the smallest catalog width.
    """
    return [width for width in catalog if width <= source_width]


def plan_derivatives(
    source_width: int, catalog: Iterable[int] = DEFAULT_WIDTHS
) -> List[DerivativeSpec]:
    """The original re-encode followed by each planned width."""
    specs = [DerivativeSpec(width=ORIGINAL)]
    specs.extend(DerivativeSpec(width=width) for width in plan_widths(source_width, catalog))
    return specs
