"""
Automatic aperture (Kron, or "AUTO") photometry

Flux is summed within the Kron ellipse of each source, k*R_Kron in size, falling back to a fixed circular aperture
for compact or faint sources whose Kron ellipse is too small, as in SExtractor's FLUX_AUTO.
"""

import logging
from typing import NamedTuple

import numpy as np

from .aperture import check_ellipse, sum_circle, sum_ellipse
from .flags import ApertureFlag, DEFAULT_SUBPIX
from .shape import kron_radius


__all__ = ['AutoResult', 'sum_auto']


class AutoResult(NamedTuple):
    """Kron aperture photometry result: aperture sums plus the Kron radius in units of the source semi-axes"""
    sum: float | np.ndarray
    sumvar: float | np.ndarray
    area: float | np.ndarray
    maskarea: float | np.ndarray
    flag: ApertureFlag | np.ndarray
    kronrad: float | np.ndarray

    @property
    def sumerr(self) -> float | np.ndarray:
        """Flux error"""
        return np.sqrt(self.sumvar)


def sum_auto(data: np.ndarray | np.ma.MaskedArray,
             x: float | np.ndarray,
             y: float | np.ndarray,
             a: float | np.ndarray,
             b: float | np.ndarray,
             theta: float | np.ndarray,
             kfactor: float = 2.5,
             kron_pivot: float = 6.0,
             min_radius: float = 1.75,
             err: float | np.ndarray | None = None,
             var: float | np.ndarray | None = None,
             mask: np.ndarray | None = None,
             maskthresh: float = 0.0,
             gain: float | None = None,
             subpix: int = DEFAULT_SUBPIX,
             height: int | None = None) -> AutoResult:
    """
    Sum data in Kron apertures

    :param data: 2D image data array
    :param x: source center(s) X (0-based)
    :param y: source center(s) Y (0-based)
    :param a: source semi-major axis, e.g. from source extraction
    :param b: source semi-minor axis, 0 < `b` <= `a`
    :param theta: position angle of the major axis in radians CCW from the X axis, -pi/2 to pi/2
    :param kfactor: Kron aperture scale in units of the Kron radius
    :param kron_pivot: semi-axes scale of the ellipse used to compute the Kron radius
    :param min_radius: radius of the circular aperture used when the Kron ellipse is smaller than that

    Other parameters -- see :func:`skyaper.photometry.aperture.sum_circle`

    :return: sum, variance, area, masked area, flags, and Kron radius; Kron radius flags are included
    """
    x, y, a, b, theta = np.broadcast_arrays(*[np.asarray(v, np.float64) for v in (x, y, a, b, theta)])
    shape = x.shape
    check_ellipse(a, b, theta)
    x, y, a, b, theta = [v.ravel() for v in (x, y, a, b, theta)]

    kronrad, kflag = kron_radius(data, x, y, a, b, theta, kron_pivot, mask=mask, maskthresh=maskthresh, height=height)

    n = x.size
    sumdata = np.zeros(n, np.float64)
    sumvar = np.zeros(n, np.float64)
    area = np.zeros(n, np.float64)
    maskarea = np.zeros(n, np.float64)
    flag = kflag.astype(np.int16)

    use_circle = kronrad*np.sqrt(a*b) < min_radius
    kw = dict(err=err, var=var, mask=mask, maskthresh=maskthresh, gain=gain, subpix=subpix, height=height)
    ell = ~use_circle
    if ell.any():
        res = sum_ellipse(data, x[ell], y[ell], a[ell], b[ell], theta[ell], r=kfactor*kronrad[ell], **kw)
        sumdata[ell], sumvar[ell], area[ell], maskarea[ell] = res.sum, res.sumvar, res.area, res.maskarea
        flag[ell] |= res.flag
    if use_circle.any():
        logging.debug('%d source(s) use circular aperture of radius %g', use_circle.sum(), min_radius)
        res = sum_circle(data, x[use_circle], y[use_circle], min_radius, **kw)
        sumdata[use_circle], sumvar[use_circle] = res.sum, res.sumvar
        area[use_circle], maskarea[use_circle] = res.area, res.maskarea
        flag[use_circle] |= res.flag

    if not shape:
        return AutoResult(
            float(sumdata[0]), float(sumvar[0]), float(area[0]), float(maskarea[0]), ApertureFlag(int(flag[0])),
            float(kronrad[0]))
    return AutoResult(
        sumdata.reshape(shape), sumvar.reshape(shape), area.reshape(shape), maskarea.reshape(shape),
        flag.reshape(shape), kronrad.reshape(shape))
