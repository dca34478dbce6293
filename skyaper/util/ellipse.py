"""
Conversions between ellipse representations

An ellipse is described either by its semi-major and semi-minor axes and position angle (a, b, theta) or by
the coefficients of its quadratic form cxx*x^2 + cyy*y^2 + cxy*x*y = 1.
"""

import numpy as np

from .errors import NonEllipseParams
from .overlap import njitc


__all__ = ['ellipse_coeffs', 'ellipse_axes', 'ellipse_coeffs_scalar', 'ellipse_axes_scalar']


@njitc
def ellipse_coeffs_scalar(a: float, b: float, theta: float) -> tuple[float, float, float]:
    """Convert ellipse parameters (a, b, theta) into coeffs (cxx, cyy, cxy)"""
    ctheta = np.cos(theta)
    stheta = np.sin(theta)
    return (ctheta**2/a**2 + stheta**2/b**2, stheta**2/a**2 + ctheta**2/b**2,
            2*ctheta*stheta*(1/a**2 - 1/b**2))


@njitc
def ellipse_axes_scalar(cxx: float, cyy: float, cxy: float) -> tuple[float, float, float]:
    """
    Convert ellipse coeffs (cxx, cyy, cxy) into (a, b, theta); derived from http://mathworld.wolfram.com/Ellipse.html

    Assumes that the coefficients describe an ellipse; position angle is in the (-pi/2, pi/2] range.
    """
    p = cxx + cyy
    q = cxx - cyy
    t = np.sqrt(q**2 + cxy**2)
    a = np.sqrt(2/(p - t))
    b = np.sqrt(2/(p + t))

    # q = cos(2*theta)*(1/a^2 - 1/b^2), cxy = sin(2*theta)*(1/a^2 - 1/b^2)
    if cxy == 0 and q == 0:
        theta = 0.0
    else:
        theta = np.arctan2(-cxy, -q)/2
        if theta <= -np.pi/2:
            theta += np.pi
    return a, b, theta


def ellipse_coeffs(a: float | np.ndarray, b: float | np.ndarray, theta: float | np.ndarray) \
        -> tuple[float | np.ndarray, float | np.ndarray, float | np.ndarray]:
    """
    Convert ellipse parameters to quadratic form coefficients

    :param a: semi-major axis, > 0
    :param b: semi-minor axis, > 0
    :param theta: position angle of the major axis in radians CCW from the X axis

    :return: cxx, cyy, cxy; scalars or arrays of the broadcast shape of inputs
    """
    ctheta = np.cos(theta)
    stheta = np.sin(theta)
    a2 = np.square(a)
    b2 = np.square(b)
    return ctheta**2/a2 + stheta**2/b2, stheta**2/a2 + ctheta**2/b2, 2*ctheta*stheta*(1/a2 - 1/b2)


def ellipse_axes(cxx: float | np.ndarray, cyy: float | np.ndarray, cxy: float | np.ndarray) \
        -> tuple[float | np.ndarray, float | np.ndarray, float | np.ndarray]:
    """
    Convert quadratic form coefficients to ellipse parameters

    :param cxx: X^2 coefficient
    :param cyy: Y^2 coefficient
    :param cxy: XY coefficient

    :return: semi-major axis, semi-minor axis (a >= b), and position angle in the (-pi/2, pi/2] range; scalars or
        arrays of the broadcast shape of inputs
    """
    cxx, cyy, cxy = np.broadcast_arrays(
        np.asarray(cxx, np.float64), np.asarray(cyy, np.float64), np.asarray(cxy, np.float64))
    if not np.all((cxx*cyy - cxy**2/4 > 0) & (cxx + cyy > 0)):
        raise NonEllipseParams('Coefficients do not describe an ellipse')

    shape = cxx.shape
    a = np.empty(shape)
    b = np.empty(shape)
    theta = np.empty(shape)
    for i in np.ndindex(shape):
        a[i], b[i], theta[i] = ellipse_axes_scalar(float(cxx[i]), float(cyy[i]), float(cxy[i]))

    if not shape:
        return float(a), float(b), float(theta)
    return a, b, theta
