"""
Aperture geometry helpers shared by all photometry kernels: pixel boxes enclosing apertures and the bands of radii
where a pixel may be partially within an aperture.
"""

import numpy as np

from ..util.overlap import njitc
from .flags import APER_TRUNC, OVERSAMP_MARGIN


__all__ = ['boxextent', 'boxextent_ellipse', 'oversamp_ann_circle', 'oversamp_ann_ellipse']


@njitc
def boxextent(x: float, y: float, rx: float, ry: float, w: int, h: int) -> tuple[int, int, int, int, int]:
    """
    Determine the extent of the box enclosing axis-aligned ellipse with semi-axes (rx, ry) centered at (x, y).

    :param x: aperture center X
    :param y: aperture center Y
    :param rx: aperture half-width
    :param ry: aperture half-height
    :param w: image width
    :param h: image height

    :return: xmin, xmax, ymin, ymax, flag

    xmin, ymin are inclusive and xmax, ymax are exclusive.
    Ensures that box is within image bound and sets a flag if it is not.
    """
    flag = 0
    xmin = int(np.floor(x - rx + 0.5))
    if xmin < 0:
        xmin = 0
        flag |= APER_TRUNC
    xmax = int(np.floor(x + rx + 1.4999999))
    if xmax > w:
        xmax = w
        flag |= APER_TRUNC
    ymin = int(np.floor(y - ry + 0.5))
    if ymin < 0:
        ymin = 0
        flag |= APER_TRUNC
    ymax = int(np.floor(y + ry + 1.4999999))
    if ymax > h:
        ymax = h
        flag |= APER_TRUNC
    return xmin, xmax, ymin, ymax, flag


@njitc
def boxextent_ellipse(x: float, y: float, cxx: float, cyy: float, cxy: float, r: float, w: int, h: int) \
        -> tuple[int, int, int, int, int]:
    """
    Determine the extent of the box enclosing ellipse

    :param x: aperture center X
    :param y: aperture center Y
    :param cxx: ellipse parameter (see :func:`skyaper.util.ellipse.ellipse_coeffs`)
    :param cyy: --//--
    :param cxy: --//--
    :param r: aperture size scaling factor
    :param w: image width
    :param h: image height

    :return: xmin, xmax, ymin, ymax, flag
    """
    dxlim = cxx - cxy**2/(4*cyy)
    dxlim = r/np.sqrt(dxlim) if dxlim > 0 else 0.0
    dylim = cyy - cxy**2/(4*cxx)
    dylim = r/np.sqrt(dylim) if dylim > 0 else 0.0
    return boxextent(x, y, dxlim, dylim, w, h)


@njitc
def oversamp_ann_circle(r: float) -> tuple[float, float]:
    """determine oversampled "annulus" for a circle"""
    r_in = r - OVERSAMP_MARGIN
    return r_in**2 if r_in > 0 else 0.0, (r + OVERSAMP_MARGIN)**2


@njitc
def oversamp_ann_ellipse(r: float, b: float) -> tuple[float, float]:
    """determine oversampled "annulus" for an ellipse with semi-minor axis `b` scaled by `r`"""
    r_in = r - OVERSAMP_MARGIN/b
    return r_in**2 if r_in > 0 else 0.0, (r + OVERSAMP_MARGIN/b)**2
