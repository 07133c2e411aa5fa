"""
Grumpkin Curve Arithmetic

y^2 = x^3 - 17 over the BN254 scalar field. Prime order, cofactor 1,
so every on-curve point other than infinity generates the group.

Internal arithmetic uses homogeneous projective coordinates (X, Y, Z)
with affine x = X/Z, y = Y/Z. Infinity is any triple with Z == 0.
Public functions take and return affine `Point`s.
"""

from __future__ import annotations
from typing import Tuple

from confbal.constants import (
    FIELD_MODULUS,
    CURVE_ORDER,
    CURVE_B,
    GENERATOR_X,
    GENERATOR_Y,
)
from confbal.core.types import Point
from confbal.errors import InvalidPointError

Projective = Tuple[int, int, int]

P = FIELD_MODULUS

INFINITY: Projective = (0, 1, 0)
GENERATOR = Point(GENERATOR_X, GENERATOR_Y)


def is_on_curve(point: Point) -> bool:
    """Check the curve equation. The (0, 0) sentinel counts as infinity."""
    if point.is_identity:
        return True
    return (point.y * point.y - point.x * point.x * point.x - CURVE_B) % P == 0


def validate_point(point: Point, allow_identity: bool = True) -> Point:
    """Return `point` or raise InvalidPointError."""
    if point.is_identity:
        if not allow_identity:
            raise InvalidPointError("Point is the unregistered (0, 0) sentinel")
        return point
    if not is_on_curve(point):
        raise InvalidPointError(
            "Point is not on the curve",
            {"x": hex(point.x), "y": hex(point.y)},
        )
    return point


def to_projective(point: Point) -> Projective:
    if point.is_identity:
        return INFINITY
    return (point.x, point.y, 1)


def to_affine(pt: Projective) -> Point:
    x, y, z = pt
    if z % P == 0:
        return Point.identity()
    z_inv = pow(z, -1, P)
    return Point(x * z_inv % P, y * z_inv % P)


def projective_double(pt: Projective) -> Projective:
    x, y, z = pt
    if z == 0 or y == 0:
        return INFINITY
    w = 3 * x * x % P
    s = y * z % P
    b = x * y * s % P
    h = (w * w - 8 * b) % P
    s_squared = s * s % P
    new_x = 2 * h * s % P
    new_y = (w * (4 * b - h) - 8 * y * y * s_squared) % P
    new_z = 8 * s * s_squared % P
    return (new_x, new_y, new_z)


def projective_add(pt1: Projective, pt2: Projective) -> Projective:
    if pt1[2] == 0:
        return pt2
    if pt2[2] == 0:
        return pt1
    x1, y1, z1 = pt1
    x2, y2, z2 = pt2
    u1 = y2 * z1 % P
    u2 = y1 * z2 % P
    v1 = x2 * z1 % P
    v2 = x1 * z2 % P
    if v1 == v2:
        if u1 == u2:
            return projective_double(pt1)
        return INFINITY
    u = (u1 - u2) % P
    v = (v1 - v2) % P
    v_squared = v * v % P
    v_squared_times_v2 = v_squared * v2 % P
    v_cubed = v * v_squared % P
    w = z1 * z2 % P
    a = (u * u * w - v_cubed - 2 * v_squared_times_v2) % P
    new_x = v * a % P
    new_y = (u * (v_squared_times_v2 - a) - v_cubed * u2) % P
    new_z = v_cubed * w % P
    return (new_x, new_y, new_z)


def projective_negate(pt: Projective) -> Projective:
    x, y, z = pt
    return (x, (-y) % P, z)


def projective_multiply(pt: Projective, scalar: int) -> Projective:
    scalar %= CURVE_ORDER
    result = INFINITY
    addend = pt
    while scalar:
        if scalar & 1:
            result = projective_add(result, addend)
        addend = projective_double(addend)
        scalar >>= 1
    return result


# ==============================================================================
# Affine API
# ==============================================================================

def point_add(p1: Point, p2: Point) -> Point:
    return to_affine(projective_add(to_projective(p1), to_projective(p2)))


def point_negate(point: Point) -> Point:
    if point.is_identity:
        return point
    return Point(point.x, (-point.y) % P)


def point_subtract(p1: Point, p2: Point) -> Point:
    return point_add(p1, point_negate(p2))


def scalar_multiply(point: Point, scalar: int) -> Point:
    """scalar·point. The scalar is reduced modulo the group order."""
    return to_affine(projective_multiply(to_projective(point), scalar))


def base_multiply(scalar: int) -> Point:
    """scalar·G."""
    return scalar_multiply(GENERATOR, scalar)
