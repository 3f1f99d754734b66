# town_palette/colour_distance.py
from __future__ import annotations

"""
Directional redmean colour distance.

Exports:
  colour_distance(sample, candidate) -> float
  colour_distances(sample, candidates) -> float64 [P]
  distance_matrix(samples, candidates) -> float64 [N,P]

The metric is NOT symmetric. The first argument is always the sampled image
colour, the second the palette candidate:

  base   = wR*dr^2 + 4*dg^2 + wB*db^2
           wR = 2 + meanR/256, wB = (2 + (255 - meanR)/256) * 1.25
  guard  : sample clearly blue (b > r+15 and b > g+15) and candidate clearly
           green (g > b+30) -> base * 10
  blue   : sample b > 160 and b > g+35 -> base recomputed with wB * 2.5,
           replacing the guarded value

Values only rank candidates; they have no absolute meaning.
"""

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from .constants import (
    BLUE_DOMINANT_FLOOR,
    BLUE_DOMINANT_MARGIN,
    BLUE_DOMINANT_WEIGHT,
    BLUE_GREEN_PENALTY,
    BLUE_SAMPLE_MARGIN,
    BLUE_WEIGHT_BOOST,
    GREEN_CANDIDATE_MARGIN,
    GREEN_WEIGHT,
)


def colour_distance(sample: Sequence[int], candidate: Sequence[int]) -> float:
    """Score how far `candidate` (palette colour) is from `sample` (image colour)."""
    r1, g1, b1 = int(sample[0]), int(sample[1]), int(sample[2])
    r2, g2, b2 = int(candidate[0]), int(candidate[1]), int(candidate[2])

    dr = float(r1 - r2)
    dg = float(g1 - g2)
    db = float(b1 - b2)
    mean_r = (r1 + r2) / 2.0

    w_r = 2.0 + mean_r / 256.0
    w_b = (2.0 + (255.0 - mean_r) / 256.0) * BLUE_WEIGHT_BOOST

    distance = w_r * dr * dr + GREEN_WEIGHT * dg * dg + w_b * db * db

    sample_blue = b1 > g1 + BLUE_SAMPLE_MARGIN and b1 > r1 + BLUE_SAMPLE_MARGIN
    candidate_green = g2 > b2 + GREEN_CANDIDATE_MARGIN
    if sample_blue and candidate_green:
        distance *= BLUE_GREEN_PENALTY

    if b1 > BLUE_DOMINANT_FLOOR and b1 > g1 + BLUE_DOMINANT_MARGIN:
        distance = (
            w_r * dr * dr
            + GREEN_WEIGHT * dg * dg
            + (w_b * BLUE_DOMINANT_WEIGHT) * db * db
        )

    return distance


def distance_matrix(
    samples: np.ndarray, candidates: np.ndarray
) -> NDArray[np.float64]:
    """
    Vectorised colour_distance for many samples vs many candidates.

    Args:
      samples: uint8/int array [N,3] of image colours
      candidates: uint8/int array [P,3] of palette colours
    Returns:
      float64 array [N,P]; entry (i, j) == colour_distance(samples[i], candidates[j])
    """
    s = np.asarray(samples, dtype=np.int64).reshape(-1, 3)
    c = np.asarray(candidates, dtype=np.int64).reshape(-1, 3)

    r1, g1, b1 = s[:, 0:1], s[:, 1:2], s[:, 2:3]  # [N,1]
    r2, g2, b2 = c[None, :, 0], c[None, :, 1], c[None, :, 2]  # [1,P]

    dr = (r1 - r2).astype(np.float64)
    dg = (g1 - g2).astype(np.float64)
    db = (b1 - b2).astype(np.float64)
    mean_r = (r1 + r2) / 2.0

    w_r = 2.0 + mean_r / 256.0
    w_b = (2.0 + (255.0 - mean_r) / 256.0) * BLUE_WEIGHT_BOOST

    base = w_r * dr * dr + GREEN_WEIGHT * dg * dg + w_b * db * db

    sample_blue = (b1 > g1 + BLUE_SAMPLE_MARGIN) & (b1 > r1 + BLUE_SAMPLE_MARGIN)
    candidate_green = g2 > b2 + GREEN_CANDIDATE_MARGIN
    guarded = np.where(sample_blue & candidate_green, base * BLUE_GREEN_PENALTY, base)

    blue_dominant = (b1 > BLUE_DOMINANT_FLOOR) & (b1 > g1 + BLUE_DOMINANT_MARGIN)
    reweighted = (
        w_r * dr * dr
        + GREEN_WEIGHT * dg * dg
        + (w_b * BLUE_DOMINANT_WEIGHT) * db * db
    )
    return np.where(blue_dominant, reweighted, guarded)


def colour_distances(
    sample: Sequence[int], candidates: np.ndarray
) -> NDArray[np.float64]:
    """One sample vs many candidates. Returns float64 [P]."""
    return distance_matrix(np.asarray(sample).reshape(1, 3), candidates)[0]


__all__ = ["colour_distance", "colour_distances", "distance_matrix"]
