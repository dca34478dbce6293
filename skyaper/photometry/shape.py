"""
Source shape measurements over elliptical regions

:func:`~kron_radius()`: first moment of the light distribution within an ellipse.

:func:`~mask_ellipse()`: set pixels within ellipses to the given value.
"""

import numpy as np
from numba import prange

from ..util.ellipse import ellipse_axes, ellipse_coeffs
from ..util.errors import IllegalApertureParams
from ..util.overlap import njitc
from ..util.pixel import as_pixel_array, prepare_image, window_row
from .aperture import check_ellipse
from .flags import APER_ALLMASKED, APER_HASMASKED, APER_NONPOSITIVE, ApertureFlag, BIG
from .geometry import boxextent_ellipse


__all__ = ['kron_radius', 'mask_ellipse']


@njitc
def _kron_radius(x: float,
                 y: float,
                 cxx: float,
                 cyy: float,
                 cxy: float,
                 r: float,
                 data: np.ndarray,
                 mask: np.ndarray | None,
                 maskthresh: float,
                 h: int) -> tuple[float, int]:
    r2 = r*r
    r1 = v1 = 0.0
    area = 0
    nrows, w = data.shape

    xmin, xmax, ymin, ymax, flag = boxextent_ellipse(x, y, cxx, cyy, cxy, r, w, h)

    for iy in range(ymin, ymax):
        row = window_row(iy, nrows)
        dy = iy - y
        for ix in range(xmin, xmax):
            dx = ix - x
            rpix2 = cxx*dx*dx + cyy*dy*dy + cxy*dx*dy
            if rpix2 <= r2:
                pix = float(data[row, ix])
                if pix < -BIG or mask is not None and mask[row, ix] > maskthresh:
                    flag |= APER_HASMASKED
                else:
                    r1 += np.sqrt(rpix2)*pix
                    v1 += pix
                    area += 1

    if area == 0:
        return 0.0, flag | APER_ALLMASKED
    if r1 <= 0 or v1 <= 0:
        return 0.0, flag | APER_NONPOSITIVE
    return r1/v1, flag


@njitc(parallel=True)
def _kron_radius_many(x: np.ndarray,
                      y: np.ndarray,
                      cxx: np.ndarray,
                      cyy: np.ndarray,
                      cxy: np.ndarray,
                      r: np.ndarray,
                      data: np.ndarray,
                      mask: np.ndarray | None,
                      maskthresh: float,
                      h: int) -> tuple[np.ndarray, np.ndarray]:
    n = x.size
    kronrad = np.empty(n, np.float64)
    flag = np.empty(n, np.int16)
    for i in prange(n):
        kronrad[i], flag[i] = _kron_radius(x[i], y[i], cxx[i], cyy[i], cxy[i], r[i], data, mask, maskthresh, h)
    return kronrad, flag


def kron_radius(data: np.ndarray | np.ma.MaskedArray,
                x: float | np.ndarray,
                y: float | np.ndarray,
                a: float | np.ndarray,
                b: float | np.ndarray,
                theta: float | np.ndarray,
                r: float | np.ndarray,
                mask: np.ndarray | None = None,
                maskthresh: float = 0.0,
                height: int | None = None) -> tuple[float | np.ndarray, ApertureFlag | np.ndarray]:
    """
    Calculate Kron radius within an ellipse

    The Kron radius is the intensity-weighted mean of the normalized elliptical radius of pixels within the ellipse
    of semi-axes `a`*`r` and `b`*`r`; multiply by `a` and `b` to get the semi-axes of the Kron ellipse.

    :param data: 2D image data array; pixels below -1e30 are treated as bad
    :param x: ellipse center(s) X (0-based)
    :param y: ellipse center(s) Y (0-based)
    :param a: semi-major axis
    :param b: semi-minor axis, 0 < `b` <= `a`
    :param theta: position angle of the major axis in radians CCW from the X axis, -pi/2 to pi/2
    :param r: scaling factor for the semi-axes defining the integration area, usually 6
    :param mask: optional mask array, same shape as `data`
    :param maskthresh: consider pixel masked if `mask`[i, j] > `maskthresh`
    :param height: logical image height if `data` holds a window of its rows

    :return: Kron radii and flags: APER_ALLMASKED if no pixels were used, APER_NONPOSITIVE if the first moment or
        flux is not positive (in both cases, radius is 0)
    """
    x, y, a, b, theta, r = np.broadcast_arrays(*[np.asarray(v, np.float64) for v in (x, y, a, b, theta, r)])
    check_ellipse(a, b, theta)
    if not np.all(r >= 0):
        raise IllegalApertureParams('Negative or invalid aperture scale')
    with np.errstate(divide='ignore', invalid='ignore'):
        cxx, cyy, cxy = ellipse_coeffs(a, b, theta)
    data, _, _, mask, h = prepare_image(data, mask=mask, height=height)

    kronrad, flag = _kron_radius_many(
        *[np.ascontiguousarray(v.ravel()) for v in (x, y, cxx, cyy, cxy, r)], data, mask, float(maskthresh), h)
    if not x.shape:
        return float(kronrad[0]), ApertureFlag(int(flag[0]))
    return kronrad.reshape(x.shape), flag.reshape(x.shape)


@njitc
def _mask_ellipse(arr: np.ndarray,
                  x: np.ndarray,
                  y: np.ndarray,
                  cxx: np.ndarray,
                  cyy: np.ndarray,
                  cxy: np.ndarray,
                  r: np.ndarray,
                  val: int,
                  h: int) -> None:
    # Sources are processed serially since ellipses may overlap
    nrows, w = arr.shape
    for i in range(x.size):
        r2 = r[i]*r[i]
        xmin, xmax, ymin, ymax, _ = boxextent_ellipse(x[i], y[i], cxx[i], cyy[i], cxy[i], r[i], w, h)
        for iy in range(ymin, ymax):
            row = window_row(iy, nrows)
            dy = iy - y[i]
            dy2 = dy*dy
            for ix in range(xmin, xmax):
                dx = ix - x[i]
                if cxx[i]*dx*dx + cyy[i]*dy2 + cxy[i]*dx*dy <= r2:
                    arr[row, ix] = val


def mask_ellipse(arr: np.ndarray,
                 x: float | np.ndarray,
                 y: float | np.ndarray,
                 a: float | np.ndarray | None = None,
                 b: float | np.ndarray | None = None,
                 theta: float | np.ndarray | None = None,
                 r: float | np.ndarray = 1.0,
                 cxx: float | np.ndarray | None = None,
                 cyy: float | np.ndarray | None = None,
                 cxy: float | np.ndarray | None = None,
                 val: int = 1,
                 height: int | None = None) -> None:
    """
    Set pixels of `arr` within ellipse(s) to `val` in place

    Ellipses are given either by (`a`, `b`, `theta`) or by (`cxx`, `cyy`, `cxy`), not both.

    :param arr: writable 2D uint8 or boolean array or its window of rows
    :param x: ellipse center(s) X (0-based)
    :param y: ellipse center(s) Y (0-based)
    :param a: semi-major axis
    :param b: semi-minor axis
    :param theta: position angle of the major axis in radians CCW from the X axis
    :param r: scaling factor for the ellipse size
    :param cxx: ellipse quadratic form coefficient
    :param cyy: --//--
    :param cxy: --//--
    :param val: value to set, 0 to 255; any nonzero value sets True in a boolean array
    :param height: logical image height if `arr` holds a window of its rows
    """
    axes = (a, b, theta)
    coeffs = (cxx, cyy, cxy)
    if all(v is not None for v in axes) and all(v is None for v in coeffs):
        x, y, a, b, theta, r = np.broadcast_arrays(*[np.asarray(v, np.float64) for v in (x, y, a, b, theta, r)])
        check_ellipse(a, b, theta)
        with np.errstate(divide='ignore', invalid='ignore'):
            cxx, cyy, cxy = ellipse_coeffs(a, b, theta)
    elif all(v is not None for v in coeffs) and all(v is None for v in axes):
        x, y, cxx, cyy, cxy, r = np.broadcast_arrays(
            *[np.asarray(v, np.float64) for v in (x, y, cxx, cyy, cxy, r)])
        ellipse_axes(cxx, cyy, cxy)
    else:
        raise ValueError('Must specify either a, b, and theta or cxx, cyy, and cxy')
    if not np.all(r >= 0):
        raise IllegalApertureParams('Negative or invalid ellipse scale')

    if not isinstance(arr, np.ndarray) or arr.ndim != 2 or arr.dtype not in (np.uint8, np.bool_):
        raise ValueError('Array must be a 2D uint8 or boolean array')
    if not arr.flags.writeable:
        raise ValueError('Array must be writable')
    val = int(val)
    if not 0 <= val <= 255:
        raise ValueError('Mask value must be in range 0 to 255, got {}'.format(val))
    if arr.dtype == np.bool_:
        val = int(val != 0)
    nrows = arr.shape[0]
    if height is None:
        height = nrows
    elif height < nrows:
        raise ValueError('Image height must not be less than the number of rows in the array')

    _mask_ellipse(
        as_pixel_array(arr), *[np.ascontiguousarray(np.ravel(v)) for v in (x, y, cxx, cyy, cxy, r)],
        val, int(height))
