"""The fixed table of derived image variants.

Every upload gets a canonical (full size) file plus the variants below.
Shrink-only variants are skipped, not upscaled, when the source is already
at or below their target width. The thumbnail is always produced because
crop-to-fill works at any source size.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from solarsite.models.enums import FitPolicy


@dataclass(frozen=True)
class VariantSpec:
    """One derived variant: target box, fit policy and file-name suffix."""

    name: str
    width: int
    height: int | None
    fit: FitPolicy
    suffix: str

    def applies_to(self, source_width: int) -> bool:
        """Whether this variant should be generated for a source this wide."""
        if self.fit == FitPolicy.SHRINK:
            return source_width > self.width
        return True


VARIANT_PLAN: Final[tuple[VariantSpec, ...]] = (
    VariantSpec("large", 1200, None, FitPolicy.SHRINK, "-large"),
    VariantSpec("medium", 800, None, FitPolicy.SHRINK, "-medium"),
    VariantSpec("thumbnail", 150, 150, FitPolicy.COVER, "-thumb"),
)


def plan_variants(
    source_width: int, plan: tuple[VariantSpec, ...] = VARIANT_PLAN
) -> list[VariantSpec]:
    """Return the variants to generate for a source of the given width.

    Examples:
        2000px wide -> large, medium, thumbnail
        1000px wide -> medium, thumbnail
        100px wide  -> thumbnail
    """
    return [spec for spec in plan if spec.applies_to(source_width)]
