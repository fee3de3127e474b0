"""Fabricated quality numbers.

Nothing here looks at pixels. The gallery shows FID/LPIPS/SSIM/diversity labels, and
these helpers fill them with pseudo-random values in fixed ranges.
"""

from __future__ import annotations

import random
from typing import Optional, Tuple

from .schemas import QualityMetrics

QUALITY_SCORE_RANGE: Tuple[float, float] = (0.7, 0.95)
MOCK_QUALITY_SCORE_RANGE: Tuple[float, float] = (0.8, 0.95)

FID_RANGE = (15.0, 35.0)
LPIPS_RANGE = (0.05, 0.20)
SSIM_RANGE = (0.80, 0.95)
DIVERSITY_RANGE = (0.75, 0.95)


def _draw(rng: random.Random, bounds: Tuple[float, float]) -> float:
    low, high = bounds
    return low + rng.random() * (high - low)


def fabricate_quality_score(
    rng: Optional[random.Random] = None,
    bounds: Tuple[float, float] = QUALITY_SCORE_RANGE,
) -> float:
    return _draw(rng or random.Random(), bounds)


def fabricate_metrics(rng: Optional[random.Random] = None) -> QualityMetrics:
    rng = rng or random.Random()
    return QualityMetrics(
        fid_score=_draw(rng, FID_RANGE),
        lpips=_draw(rng, LPIPS_RANGE),
        ssim=_draw(rng, SSIM_RANGE),
        diversity=_draw(rng, DIVERSITY_RANGE),
    )
