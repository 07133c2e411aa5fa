"""
Baby-Step Giant-Step Discrete Logarithm

Recovers v from v·G for 0 <= v <= bound in O(sqrt(bound)) time and space.

With a table of m baby steps, x(j·G) -> j for j in [1, m], one lookup
matches k·G for every k in [-m, m] (the y coordinate picks the sign).
Each giant step therefore covers 2m + 1 values:

    v = i·(2m + 1) + m + k,   check (Q - m·G) - i·(2m + 1)·G == k·G

Table keys are the low 64 bits of x; a hit is confirmed against the full
point. Both phases add affine points in batches that share a single
field inversion, so neither pays an inversion per step.
"""

from __future__ import annotations
import logging
import math
from functools import lru_cache
from typing import Dict, Iterator, List, Optional

from confbal.constants import BSGS_BATCH_SIZE, DEFAULT_BSGS_BABY_STEPS, FIELD_MODULUS
from confbal.core.types import Point
from confbal.crypto.curve import (
    GENERATOR,
    INFINITY,
    Projective,
    base_multiply,
    point_add,
    point_negate,
    point_subtract,
    projective_add,
    to_projective,
)

logger = logging.getLogger(__name__)

P = FIELD_MODULUS

_KEY_MASK = (1 << 64) - 1


def _batch_invert(values: List[int]) -> List[Optional[int]]:
    """Invert every value with one field inversion (Montgomery's trick). Zeros map to None."""
    prefix: List[int] = []
    acc = 1
    for v in values:
        prefix.append(acc)
        if v:
            acc = acc * v % P
    inv = pow(acc, -1, P)

    result: List[Optional[int]] = [None] * len(values)
    for i in range(len(values) - 1, -1, -1):
        v = values[i]
        if not v:
            continue
        result[i] = inv * prefix[i] % P
        inv = inv * v % P
    return result


def _batch_to_affine(points: List[Projective]) -> List[Point]:
    """Normalize many projective points with a single field inversion."""
    inverses = _batch_invert([z % P for _, _, z in points])
    return [
        Point.identity() if z_inv is None else Point(x * z_inv % P, y * z_inv % P)
        for (x, y, _), z_inv in zip(points, inverses)
    ]


def _batch_add(base: Point, offsets: List[Point]) -> List[Point]:
    """
    base + T for every T in offsets, sharing one field inversion.

    offsets must not contain the identity.
    """
    if base.is_identity:
        return list(offsets)

    inverses = _batch_invert([(t.x - base.x) % P for t in offsets])
    result: List[Point] = []
    for t, inv in zip(offsets, inverses):
        if inv is None:
            # T == ±base: doubling or cancellation
            result.append(point_add(base, t))
            continue
        lam = (t.y - base.y) * inv % P
        x = (lam * lam - base.x - t.x) % P
        result.append(Point(x, (lam * (base.x - x) - base.y) % P))
    return result


def _multiples(point: Point, count: int) -> List[Point]:
    """[point, 2·point, ..., count·point]."""
    projective: List[Projective] = []
    current = INFINITY
    step = to_projective(point)
    for _ in range(count):
        current = projective_add(current, step)
        projective.append(current)
    return _batch_to_affine(projective)


def table_size(bound: int, baby_steps: Optional[int] = None) -> int:
    """
    Effective baby-step table size for a bound.

    About sqrt(bound / 2), which balances table entries against giant
    steps, limited by `baby_steps` (DEFAULT_BSGS_BABY_STEPS if None).
    """
    cap = baby_steps or DEFAULT_BSGS_BABY_STEPS
    return max(1, min(math.isqrt(max(bound, 0) // 2) + 1, cap))


class BabyStepGiantStep:
    """
    Precomputed discrete-log solver for a fixed bound.

    Immutable after construction; safe to share.
    """

    def __init__(self, bound: int, baby_steps: Optional[int] = None):
        if bound < 0:
            raise ValueError(f"bound must be non-negative: {bound}")
        self.bound = bound
        self.baby_steps = table_size(bound, baby_steps)
        self.span = 2 * self.baby_steps + 1
        self.giant_steps = -(-(bound + 1) // self.span)

        self._batch = min(BSGS_BATCH_SIZE, max(self.baby_steps, self.giant_steps))
        self._table = self._build_table()
        self._center = base_multiply(self.baby_steps)
        self._giant_offsets = _multiples(point_negate(base_multiply(self.span)), self._batch)

        logger.debug(
            f"BSGS table built: bound={bound} baby_steps={self.baby_steps} "
            f"giant_steps={self.giant_steps}"
        )

    def _build_table(self) -> Dict[int, int]:
        offsets = _multiples(GENERATOR, min(self._batch, self.baby_steps))
        table: Dict[int, int] = {}
        chunk = offsets
        j = 0
        while True:
            for point in chunk:
                j += 1
                table.setdefault(point.x & _KEY_MASK, j)
                if j == self.baby_steps:
                    return table
            chunk = _batch_add(chunk[-1], offsets)

    def _lookup(self, point: Point) -> Optional[int]:
        """k in [-m, m] with k·G == point, or None."""
        if point.is_identity:
            return 0
        j = self._table.get(point.x & _KEY_MASK)
        if j is None:
            return None
        candidate = base_multiply(j)
        if candidate == point:
            return j
        if candidate == point_negate(point):
            return -j
        # low-bit key collision
        return None

    def _giant_points(self, start: Point) -> Iterator[Point]:
        yield start
        produced = 1
        base = start
        while produced < self.giant_steps:
            chunk = _batch_add(base, self._giant_offsets[:self.giant_steps - produced])
            yield from chunk
            produced += len(chunk)
            base = chunk[-1]

    def solve(self, point: Point) -> Optional[int]:
        """
        Find v in [0, bound] with v·G == point.

        Returns:
            v, or None if no such value exists within the bound
        """
        start = point_subtract(point, self._center)
        for i, candidate in enumerate(self._giant_points(start)):
            k = self._lookup(candidate)
            if k is not None:
                value = i * self.span + self.baby_steps + k
                return value if value <= self.bound else None
        return None


@lru_cache(maxsize=8)
def _cached_bsgs(bound: int, baby_steps: int) -> BabyStepGiantStep:
    return BabyStepGiantStep(bound, baby_steps)


def get_bsgs(bound: int, baby_steps: Optional[int] = None) -> BabyStepGiantStep:
    """
    Get a shared solver for `bound`, building it on first use.

    Callers asking for the same effective table size share one solver.
    """
    return _cached_bsgs(bound, table_size(bound, baby_steps))
