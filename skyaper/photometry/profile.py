"""
Radial flux profiles

:func:`~sum_circann_multi()`: sum data in a series of contiguous circular annuli around each source.

:func:`~ppf()`: radii enclosing the given fractions of the total flux of a binned radial profile.

:func:`~flux_radius()`: radii enclosing the given fractions of the source flux, e.g. the half-light radius.
"""

import logging

import numpy as np
from numba import prange

from ..util.errors import IllegalApertureParams
from ..util.overlap import njitc
from ..util.pixel import prepare_image, window_row
from .aperture import ApertureResult, check_subpix
from .flags import (
    APER_HASMASKED, ApertureFlag, DEFAULT_SUBPIX, ERROR_IS_ARRAY, ERROR_IS_VAR, FLUX_RADIUS_BUFSIZE, MASK_IGNORE,
    OVERSAMP_MARGIN)
from .geometry import boxextent


__all__ = ['sum_circann_multi', 'ppf', 'flux_radius']


@njitc
def _sum_circann_multi(x: float,
                       y: float,
                       rmax: float,
                       data: np.ndarray,
                       noise: np.ndarray,
                       mask: np.ndarray | None,
                       maskthresh: float,
                       gain: float,
                       inflag: int,
                       subpix: int,
                       h: int,
                       sumdata: np.ndarray,
                       sumvar: np.ndarray,
                       area: np.ndarray,
                       maskarea: np.ndarray) -> int:
    """
    Sum pixels in n = len(`sumdata`) annuli of width `rmax`/n around (`x`, `y`)

    Pixels close to a bin boundary are oversampled, and each sample goes to its own bin. Output arrays must be
    zero-initialized.

    :return: aperture flags
    """
    n = sumdata.size
    nrows, w = data.shape

    # margin for interpolation
    r_out = rmax + 1.5
    r_out2 = r_out*r_out

    xmin, xmax, ymin, ymax, flag = boxextent(x, y, r_out, r_out, w, h)
    if rmax <= 0:
        return flag

    step = rmax/n
    stepdens = 1.0/step
    prevbinmargin = OVERSAMP_MARGIN
    nextbinmargin = step - OVERSAMP_MARGIN

    scale = 1.0/subpix
    scale2 = scale*scale
    offset = 0.5*(scale - 1.0)

    errisarray = inflag & ERROR_IS_ARRAY
    errisstd = not inflag & ERROR_IS_VAR
    varpix = 0.0
    if not errisarray:
        varpix = float(noise[0, 0])
        if errisstd:
            varpix *= varpix

    for iy in range(ymin, ymax):
        row = window_row(iy, nrows)
        dy = iy - y
        for ix in range(xmin, xmax):
            dx = ix - x
            rpix2 = dx*dx + dy*dy
            if rpix2 >= r_out2:
                continue

            pix = float(data[row, ix])
            if errisarray:
                varpix = float(noise[row, ix])
                if errisstd:
                    varpix *= varpix
            ismasked = mask is not None and mask[row, ix] > maskthresh
            if ismasked:
                flag |= APER_HASMASKED

            rpix = np.sqrt(rpix2)
            d = rpix % step
            if d < prevbinmargin or d > nextbinmargin:
                # close to bin boundary: oversample
                sdy = dy + offset
                for _sy in range(subpix):
                    sdx = dx + offset
                    for _sx in range(subpix):
                        j = int(np.sqrt(sdx*sdx + sdy*sdy)*stepdens)
                        if j < n:
                            if ismasked:
                                maskarea[j] += scale2
                            else:
                                sumdata[j] += scale2*pix
                                sumvar[j] += scale2*varpix
                            area[j] += scale2
                        sdx += scale
                    sdy += scale
            else:
                j = int(rpix*stepdens)
                if j < n:
                    if ismasked:
                        maskarea[j] += 1.0
                    else:
                        sumdata[j] += pix
                        sumvar[j] += varpix
                    area[j] += 1.0

    # correct for masked values
    if mask is not None:
        if inflag & MASK_IGNORE:
            for j in range(n):
                area[j] -= maskarea[j]
        else:
            for j in range(n):
                if area[j] == maskarea[j]:
                    tmp = 0.0
                else:
                    tmp = area[j]/(area[j] - maskarea[j])
                sumdata[j] *= tmp
                sumvar[j] *= tmp

    # add poisson noise, only if gain > 0
    if gain > 0:
        for j in range(n):
            if sumdata[j] > 0:
                sumvar[j] += sumdata[j]/gain

    return flag


@njitc(parallel=True)
def _sum_circann_multi_many(x: np.ndarray,
                            y: np.ndarray,
                            rmax: np.ndarray,
                            n: int,
                            data: np.ndarray,
                            noise: np.ndarray,
                            mask: np.ndarray | None,
                            maskthresh: float,
                            gain: float,
                            inflag: int,
                            subpix: int,
                            h: int) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    nsrc = x.size
    sumdata = np.zeros((nsrc, n), np.float64)
    sumvar = np.zeros((nsrc, n), np.float64)
    area = np.zeros((nsrc, n), np.float64)
    maskarea = np.zeros((nsrc, n), np.float64)
    flag = np.empty(nsrc, np.int16)
    for i in prange(nsrc):
        flag[i] = _sum_circann_multi(
            x[i], y[i], rmax[i], data, noise, mask, maskthresh, gain, inflag, subpix, h,
            sumdata[i], sumvar[i], area[i], maskarea[i])
    return sumdata, sumvar, area, maskarea, flag


def _multi(data, x, y, rmax, n, err, var, mask, maskthresh, gain, subpix, mask_ignore, height) -> tuple:
    """Validate inputs and run the multi-annulus kernel; return outputs with sources along the first axis"""
    subpix = check_subpix(subpix, 1)
    n = int(n)
    if n < 1:
        raise IllegalApertureParams('Number of annuli must be positive, got {}'.format(n))
    x, y, rmax = np.broadcast_arrays(
        np.asarray(x, np.float64), np.asarray(y, np.float64), np.asarray(rmax, np.float64))
    if not np.all(rmax >= 0):
        raise IllegalApertureParams('Negative or invalid maximum radius')
    data, noise, inflag, mask, h = prepare_image(data, err, var, mask, height)
    if mask_ignore:
        inflag |= MASK_IGNORE
    return x.shape, _sum_circann_multi_many(
        np.ascontiguousarray(x.ravel()), np.ascontiguousarray(y.ravel()), np.ascontiguousarray(rmax.ravel()), n,
        data, noise, mask, float(maskthresh), float(gain) if gain else 0.0, inflag, subpix, h)


def sum_circann_multi(data: np.ndarray | np.ma.MaskedArray,
                      x: float | np.ndarray,
                      y: float | np.ndarray,
                      rmax: float | np.ndarray,
                      n: int,
                      err: float | np.ndarray | None = None,
                      var: float | np.ndarray | None = None,
                      mask: np.ndarray | None = None,
                      maskthresh: float = 0.0,
                      gain: float | None = None,
                      subpix: int = DEFAULT_SUBPIX,
                      mask_ignore: bool = False,
                      height: int | None = None) -> ApertureResult:
    """
    Sum data in `n` contiguous circular annuli of equal width from 0 to `rmax`

    :param data: 2D image data array
    :param x: source center(s) X (0-based)
    :param y: source center(s) Y (0-based)
    :param rmax: outer radius of the last annulus
    :param n: number of annuli
    :param subpix: subpixel sampling factor for pixels close to annulus boundaries, >= 1

    Other parameters -- see :func:`skyaper.photometry.aperture.sum_circle`

    :return: sum, variance, area, and masked area arrays of shape x.shape + (n,), and flags of shape x.shape
    """
    shape, (sumdata, sumvar, area, maskarea, flag) = _multi(
        data, x, y, rmax, n, err, var, mask, maskthresh, gain, subpix, mask_ignore, height)
    n = sumdata.shape[1]
    if not shape:
        return ApertureResult(sumdata[0], sumvar[0], area[0], maskarea[0], ApertureFlag(int(flag[0])))
    return ApertureResult(
        sumdata.reshape(shape + (n,)), sumvar.reshape(shape + (n,)), area.reshape(shape + (n,)),
        maskarea.reshape(shape + (n,)), flag.reshape(shape))


@njitc
def _ppf(xmax: float, y: np.ndarray, frac: np.ndarray, total: float, out: np.ndarray) -> None:
    n = y.size
    step = xmax/n
    for j in range(frac.size):
        # accumulate bins until the cumulative sum reaches the target
        targsum = frac[j]*total
        cumsum = 0.0
        i = 0
        while i < n and cumsum < targsum:
            cumsum += y[i]
            i += 1

        if i == 0:
            out[j] = 0.0
        elif cumsum < targsum:
            out[j] = xmax
        else:
            out[j] = step*(i + (targsum - cumsum)/y[i - 1])


@njitc(parallel=True)
def _ppf_many(xmax: np.ndarray, y: np.ndarray, frac: np.ndarray, total: np.ndarray) -> np.ndarray:
    m = y.shape[0]
    out = np.empty((m, frac.size), np.float64)
    for i in prange(m):
        _ppf(xmax[i], y[i], frac, total[i], out[i])
    return out


def ppf(xmax: float | np.ndarray,
        y: np.ndarray,
        frac: float | np.ndarray,
        total: float | np.ndarray | None = None) -> float | np.ndarray:
    """
    Percent point function of a binned radial profile

    :param xmax: outer edge of the last bin; bins have equal width xmax/n
    :param y: per-bin values, bins along the last axis; leading axes enumerate profiles
    :param frac: fraction(s) of the total to find radii for
    :param total: total per profile; defaults to the sum of bins

    :return: radii of shape y.shape[:-1] + frac.shape; 0 when the target is not positive, `xmax` when the target
        is never reached
    """
    y = np.asarray(y, np.float64)
    if y.ndim < 1 or not y.shape[-1]:
        raise ValueError('Profile must have at least one bin')
    frac = np.asarray(frac, np.float64)
    prof_shape = y.shape[:-1]
    if total is None:
        total = y.sum(-1)
    total = np.broadcast_to(np.asarray(total, np.float64), prof_shape)
    xmax = np.broadcast_to(np.asarray(xmax, np.float64), prof_shape)

    out = _ppf_many(
        np.ascontiguousarray(xmax.ravel()), np.ascontiguousarray(y.reshape(-1, y.shape[-1])),
        np.ascontiguousarray(frac.ravel()), np.ascontiguousarray(total.ravel()))
    out = out.reshape(prof_shape + frac.shape)
    if not out.shape:
        return float(out)
    return out


def flux_radius(data: np.ndarray | np.ma.MaskedArray,
                x: float | np.ndarray,
                y: float | np.ndarray,
                rmax: float | np.ndarray,
                frac: float | np.ndarray,
                normflux: float | np.ndarray | None = None,
                mask: np.ndarray | None = None,
                maskthresh: float = 0.0,
                subpix: int = DEFAULT_SUBPIX,
                height: int | None = None) -> tuple[float | np.ndarray, ApertureFlag | np.ndarray]:
    """
    Return radii of circles enclosing the given fractions of the source flux

    :param data: 2D image data array
    :param x: source center(s) X (0-based)
    :param y: source center(s) Y (0-based)
    :param rmax: maximum radius to analyze
    :param frac: requested fraction(s) of the total flux, e.g. 0.5 for the half-light radius
    :param normflux: total flux of each source; defaults to the flux within `rmax`
    :param mask: optional mask array, same shape as `data`
    :param maskthresh: consider pixel masked if `mask`[i, j] > `maskthresh`
    :param subpix: subpixel sampling factor, >= 1
    :param height: logical image height if `data` holds a window of its rows

    :return: radii of shape x.shape + frac.shape and flags of shape x.shape
    """
    shape, (sumdata, _, _, _, flag) = _multi(
        data, x, y, rmax, FLUX_RADIUS_BUFSIZE, None, None, mask, maskthresh, None, subpix, False, height)
    if normflux is None:
        total = sumdata.sum(-1)
    else:
        total = np.broadcast_to(np.asarray(normflux, np.float64), shape).ravel()
    nonpos = (total <= 0).sum()
    if nonpos:
        logging.warning('%d source(s) with non-positive total flux in flux_radius', nonpos)

    rmax = np.broadcast_to(np.asarray(rmax, np.float64), shape).ravel()
    radii = ppf(rmax, sumdata, frac, total)
    radii = np.reshape(radii, shape + np.shape(frac))
    if not shape:
        return (float(radii) if not radii.shape else radii), ApertureFlag(int(flag[0]))
    return radii, flag.reshape(shape)
