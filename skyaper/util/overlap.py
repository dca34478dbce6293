"""
Licensed under a 3-clause BSD style license.

Functions for calculating exact overlap between a pixel and a circle or an ellipse.

The rectangle is reprojected to the frame in which the aperture is a unit circle, and the area of the resulting
quadrilateral clipped by the circle is accumulated edge by edge as signed areas of origin-anchored triangles.
"""

import numpy as np
from numba import njit


__all__ = ['circoverlap', 'ellipoverlap', 'njitc']


def njitc(*args, **kws):
    """
    Equivalent to njit(..., nogil=True, cache=True, error_model='numpy')
    """
    kws.setdefault('nogil', True)
    kws.setdefault('cache', True)
    kws.setdefault('error_model', 'numpy')
    return njit(*args, **kws)


@njitc
def area_sector(x1: float, y1: float, x2: float, y2: float) -> float:
    """
    Signed area of the unit circle sector between directions (x1, y1) and (x2, y2)
    """
    return 0.5*np.arctan2(x1*y2 - x2*y1, x1*x2 + y1*y2)


@njitc
def triangle_unitcircle_overlap(x1: float, y1: float, x2: float, y2: float) -> float:
    """
    Signed area of overlap between the unit circle and the triangle with vertices at the origin, (x1, y1), and
    (x2, y2); positive for counter-clockwise vertex order
    """
    in1 = x1**2 + y1**2 <= 1
    in2 = x2**2 + y2**2 <= 1
    if in1 and in2:
        return 0.5*(x1*y2 - x2*y1)

    dx = x2 - x1
    dy = y2 - y1
    a = dx**2 + dy**2
    if a == 0:
        return 0.0

    # Points of the line (x1, y1) + t*(dx, dy) on the circle solve a*t^2 + 2*b*t + c = 0
    b = x1*dx + y1*dy
    c = x1**2 + y1**2 - 1
    delta = b**2 - a*c
    if delta <= 0:
        # line misses the circle
        return area_sector(x1, y1, x2, y2)

    delta = np.sqrt(delta)
    t1 = max((-b - delta)/a, 0.0)
    t2 = min((-b + delta)/a, 1.0)
    if t1 >= t2:
        # chord lies outside the segment
        return area_sector(x1, y1, x2, y2)

    px1 = x1 + t1*dx
    py1 = y1 + t1*dy
    px2 = x1 + t2*dx
    py2 = y1 + t2*dy
    return area_sector(x1, y1, px1, py1) + 0.5*(px1*py2 - px2*py1) + area_sector(px2, py2, x2, y2)


@njitc
def quad_unitcircle_overlap(x1: float, y1: float, x2: float, y2: float, x3: float, y3: float,
                            x4: float, y4: float) -> float:
    """
    Area of overlap between the unit circle and a convex quadrilateral given by its vertices in order
    """
    return abs(triangle_unitcircle_overlap(x1, y1, x2, y2) +
               triangle_unitcircle_overlap(x2, y2, x3, y3) +
               triangle_unitcircle_overlap(x3, y3, x4, y4) +
               triangle_unitcircle_overlap(x4, y4, x1, y1))


@njitc
def circoverlap(xmin: float, ymin: float, xmax: float, ymax: float, r: float) -> float:
    """
    Area of overlap of a rectangle and a circle of radius `r` centered at the origin
    """
    if r <= 0:
        return 0.0

    # cheap exits: rectangle completely inside or outside the circle
    r2 = r**2
    fx = max(xmax**2, xmin**2)
    fy = max(ymax**2, ymin**2)
    if fx + fy <= r2:
        return (xmax - xmin)*(ymax - ymin)
    nx = 0.0 if xmin <= 0 <= xmax else min(xmin**2, xmax**2)
    ny = 0.0 if ymin <= 0 <= ymax else min(ymin**2, ymax**2)
    if nx + ny >= r2:
        return 0.0

    return r2*quad_unitcircle_overlap(
        xmin/r, ymin/r, xmax/r, ymin/r, xmax/r, ymax/r, xmin/r, ymax/r)


@njitc
def ellipoverlap(xmin: float, ymin: float, xmax: float, ymax: float, a: float, b: float, theta: float) -> float:
    """
    Exact overlap between a rectangle defined by (xmin, ymin, xmax, ymax) and an ellipse centered at the origin with
    semi-major and semi-minor axes `a` and `b` and position angle `theta`
    """
    if a <= 0 or b <= 0:
        return 0.0

    ct = np.cos(theta)
    st = np.sin(theta)

    # Rotate by -theta and scale axes so that the ellipse becomes a unit circle; areas shrink by a*b
    x1 = (xmin*ct + ymin*st)/a
    y1 = (ymin*ct - xmin*st)/b
    x2 = (xmax*ct + ymin*st)/a
    y2 = (ymin*ct - xmax*st)/b
    x3 = (xmax*ct + ymax*st)/a
    y3 = (ymax*ct - xmax*st)/b
    x4 = (xmin*ct + ymax*st)/a
    y4 = (ymax*ct - xmin*st)/b

    return a*b*quad_unitcircle_overlap(x1, y1, x2, y2, x3, y3, x4, y4)
