"""
Parallel Numba implementation of aperture photometry based on SEP source code.

:func:`~sum_circle()`, :func:`~sum_ellipse()`, :func:`~sum_circann()`, :func:`~sum_ellipann()`: sum data over
circular and elliptical apertures and annuli, with exact sub-pixel math (subpix = 0) or subpix x subpix oversampling
of pixels at the aperture boundary.

Note the difference with SEP in sum_*() outputs: (sum, sumvar, area, maskarea, flag) instead of (sum, sumerr, flag);
the flux error is available as `sumerr`.
"""

from typing import NamedTuple

import numpy as np
from numba import prange

from ..util.errors import IllegalApertureParams, IllegalSubpixel
from ..util.ellipse import ellipse_coeffs_scalar
from ..util.overlap import circoverlap, ellipoverlap, njitc
from ..util.pixel import prepare_image, window_row
from .flags import APER_HASMASKED, ApertureFlag, DEFAULT_SUBPIX, ERROR_IS_ARRAY, ERROR_IS_VAR, MASK_IGNORE
from .geometry import boxextent, boxextent_ellipse, oversamp_ann_circle, oversamp_ann_ellipse


__all__ = ['ApertureResult', 'sum_circle', 'sum_circann', 'sum_ellipse', 'sum_ellipann']


class ApertureResult(NamedTuple):
    """
    Aperture photometry result for one or more sources

    Fields are scalars for scalar inputs and arrays otherwise.
    """
    sum: float | np.ndarray
    sumvar: float | np.ndarray
    area: float | np.ndarray
    maskarea: float | np.ndarray
    flag: ApertureFlag | np.ndarray

    @property
    def sumerr(self) -> float | np.ndarray:
        """Flux error"""
        return np.sqrt(self.sumvar)


def sum_aper_factory(aper_init,
                     aper_boxextent,
                     aper_rpix2,
                     aper_compare1,
                     aper_compare2,
                     aper_compare3,
                     aper_exact) -> tuple:
    """
    Create a pair of jitted functions that sum data over a specific aperture shape, one for a single source and one
    for an array of sources

    :param aper_init: function that returns 1D array of internal aperture parameters used by the functions below::
            def aper_init(aper: np.ndarray) -> np.ndarray:
                ...
        `aper` is 1D array of aperture-specific parameters, already validated
    :param aper_boxextent: function that returns the extent of the box enclosing the aperture::
            def aper_boxextent(x: float, y: float, w: int, h: int, aper_params: np.ndarray) \
                    -> tuple[int, int, int, int, int]:
                ...
    :param aper_rpix2: function that returns normalized squared distance from the aperture center::
            def aper_rpix2(dx: float, dy: float, aper_params: np.ndarray) -> float:
                ...
        `dx` and `dy` are pixel coordinates relative to the aperture center
    :param aper_compare1: function that returns True if the given pixel may be at least partially within
        the aperture::
            def aper_compare1(rpix2: float, aper_params: np.ndarray) -> bool:
                ...
        `rpix2` is the value returned by `aper_rpix2` for the pixel center
    :param aper_compare2: function that returns True if the given pixel is not certainly fully within the aperture::
            def aper_compare2(rpix2: float, aper_params: np.ndarray) -> bool:
                ...
    :param aper_compare3: function that returns True if the given sub-pixel sample lies within the aperture::
            def aper_compare3(rpix2: float, aper_params: np.ndarray) -> bool:
                ...
    :param aper_exact: function that returns the amount of overlap of the given pixel with the aperture::
            def aper_exact(dx: float, dy: float, aper_params: np.ndarray) -> float:
                ...

    :return: summation function instances for the given aperture shape
    """

    @njitc(cache=False)
    def _sum_aper(x: float,
                  y: float,
                  aper: np.ndarray,
                  data: np.ndarray,
                  noise: np.ndarray,
                  mask: np.ndarray | None,
                  maskthresh: float,
                  gain: float,
                  inflag: int,
                  subpix: int,
                  h: int) -> tuple[float, float, float, float, int]:
        """
        Sum pixels over the given aperture with subpixel accuracy

        :param x: aperture center X (0-based)
        :param y: aperture center Y (0-based)
        :param aper: 1D array of aperture-specific parameters
        :param data: 2D image data array or a window of `h` rows
        :param noise: 2D array of image noise, same shape as `data`, or a single-element 1x1 array if noise is
            constant
        :param mask: optional 2D mask array, same shape as `data`
        :param maskthresh: consider pixel masked if `mask`[i, j] > `maskthresh`
        :param gain: inverse camera gain in e-/count; no Poisson noise if <= 0
        :param inflag: input options: ERROR_IS_VAR, ERROR_IS_ARRAY, MASK_IGNORE
        :param subpix: subpixel sampling factor; 0 = exact overlap
        :param h: logical image height

        :return::
            * total flux over the aperture
            * flux variance
            * total aperture area
            * masked aperture area
            * aperture flags (APER_TRUNC and/or APER_HASMASKED)
        """
        # initializations
        tv = sigtv = totarea = maskarea = 0.0
        nrows, w = data.shape
        aper_params = aper_init(aper)

        if subpix > 0:
            scale = 1.0/subpix
        else:
            scale = 1.0
        scale2 = scale*scale
        offset = 0.5*(scale - 1.0)

        errisarray = inflag & ERROR_IS_ARRAY
        errisstd = not inflag & ERROR_IS_VAR

        # Scalar noise?
        varpix = 0.0
        if not errisarray:
            varpix = float(noise[0, 0])
            if errisstd:
                varpix *= varpix

        # get extent of box
        xmin, xmax, ymin, ymax, flag = aper_boxextent(x, y, w, h, aper_params)

        # loop over rows in the box
        for iy in range(ymin, ymax):
            row = window_row(iy, nrows)

            # loop over pixels in this row
            for ix in range(xmin, xmax):
                dx = ix - x
                dy = iy - y
                rpix2 = aper_rpix2(dx, dy, aper_params)
                if not aper_compare1(rpix2, aper_params):
                    continue

                if aper_compare2(rpix2, aper_params):
                    # might be partially in aperture
                    if subpix == 0:
                        overlap = min(max(aper_exact(dx, dy, aper_params), 0.0), 1.0)
                    else:
                        overlap = 0.0
                        sdy = dy + offset
                        for _sy in range(subpix):
                            sdx = dx + offset
                            for _sx in range(subpix):
                                if aper_compare3(aper_rpix2(sdx, sdy, aper_params), aper_params):
                                    overlap += scale2
                                sdx += scale
                            sdy += scale
                else:
                    # definitely fully in aperture
                    overlap = 1.0

                ismasked = False
                if mask is not None:
                    ismasked = mask[row, ix] > maskthresh

                if ismasked:
                    flag |= APER_HASMASKED
                    maskarea += overlap
                else:
                    tv += float(data[row, ix])*overlap
                    if errisarray:
                        varpix = float(noise[row, ix])
                        if errisstd:
                            varpix *= varpix
                    sigtv += varpix*overlap

                totarea += overlap

        # correct for masked values
        if mask is not None:
            if inflag & MASK_IGNORE:
                totarea -= maskarea
            else:
                if totarea == maskarea:
                    tmp = 0.0
                else:
                    tmp = totarea/(totarea - maskarea)
                tv *= tmp
                sigtv *= tmp

        # add poisson noise, only if gain > 0
        if gain > 0 and tv > 0:
            sigtv += tv/gain

        return tv, sigtv, totarea, maskarea, flag

    @njitc(cache=False, parallel=True)
    def _sum_aper_many(x: np.ndarray,
                       y: np.ndarray,
                       aper: np.ndarray,
                       data: np.ndarray,
                       noise: np.ndarray,
                       mask: np.ndarray | None,
                       maskthresh: float,
                       gain: float,
                       inflag: int,
                       subpix: int,
                       h: int) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Sum pixels over apertures centered at each (`x`, `y`) with aperture parameters in rows of `aper`

        Other inputs -- see :func:`_sum_aper`
        """
        n = x.size
        sumdata = np.empty(n, np.float64)
        sumvar = np.empty(n, np.float64)
        area = np.empty(n, np.float64)
        maskarea = np.empty(n, np.float64)
        flag = np.empty(n, np.int16)
        for i in prange(n):
            sumdata[i], sumvar[i], area[i], maskarea[i], flag[i] = _sum_aper(
                x[i], y[i], aper[i], data, noise, mask, maskthresh, gain, inflag, subpix, h)
        return sumdata, sumvar, area, maskarea, flag

    return _sum_aper, _sum_aper_many


@njitc(inline='always')
def _aper_init_circle(aper: np.ndarray) -> np.ndarray:
    aper_params = np.empty(4, np.float64)
    r = float(aper[0])
    aper_params[0] = r
    aper_params[1] = r*r
    aper_params[2], aper_params[3] = oversamp_ann_circle(r)
    return aper_params


@njitc(inline='always')
def _aper_boxextent_circle(x: float, y: float, w: int, h: int, aper_params: np.ndarray) \
        -> tuple[int, int, int, int, int]:
    r = float(aper_params[0])
    return boxextent(x, y, r, r, w, h)


@njitc(inline='always')
def _aper_rpix2_circle(dx: float, dy: float, _aper_params: np.ndarray) -> float:
    return dx**2 + dy**2


@njitc(inline='always')
def _aper_compare1_circle(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 < float(aper_params[3])


@njitc(inline='always')
def _aper_compare2_circle(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 >= float(aper_params[2])


@njitc(inline='always')
def _aper_compare3_circle(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 < float(aper_params[1])


@njitc(inline='always')
def _aper_exact_circle(dx: float, dy: float, aper_params: np.ndarray) -> float:
    return circoverlap(dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, float(aper_params[0]))


_sum_circle, _sum_circle_many = sum_aper_factory(
    _aper_init_circle, _aper_boxextent_circle, _aper_rpix2_circle, _aper_compare1_circle, _aper_compare2_circle,
    _aper_compare3_circle, _aper_exact_circle)


@njitc(inline='always')
def _aper_init_ellipse(aper: np.ndarray) -> np.ndarray:
    # a, b, theta, r -> a*r, b*r, theta, r^2, r_in2, r_out2, cxx, cyy, cxy, r
    a, b, theta, r = float(aper[0]), float(aper[1]), float(aper[2]), float(aper[3])
    aper_params = np.empty(10, np.float64)
    aper_params[0] = a*r
    aper_params[1] = b*r
    aper_params[2] = theta
    aper_params[3] = r*r
    aper_params[4], aper_params[5] = oversamp_ann_ellipse(r, b)
    aper_params[6], aper_params[7], aper_params[8] = ellipse_coeffs_scalar(a, b, theta)
    aper_params[9] = r
    return aper_params


@njitc(inline='always')
def _aper_boxextent_ellipse(x: float, y: float, w: int, h: int, aper_params: np.ndarray) \
        -> tuple[int, int, int, int, int]:
    return boxextent_ellipse(
        x, y, float(aper_params[6]), float(aper_params[7]), float(aper_params[8]), float(aper_params[9]), w, h)


@njitc(inline='always')
def _aper_rpix2_ellipse(dx: float, dy: float, aper_params: np.ndarray) -> float:
    return float(aper_params[6])*dx**2 + float(aper_params[7])*dy**2 + float(aper_params[8])*dx*dy


@njitc(inline='always')
def _aper_compare1_ellipse(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 < float(aper_params[5])


@njitc(inline='always')
def _aper_compare2_ellipse(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 >= float(aper_params[4])


@njitc(inline='always')
def _aper_compare3_ellipse(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 < float(aper_params[3])


@njitc(inline='always')
def _aper_exact_ellipse(dx: float, dy: float, aper_params: np.ndarray) -> float:
    return ellipoverlap(
        dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, float(aper_params[0]), float(aper_params[1]), float(aper_params[2]))


_sum_ellipse, _sum_ellipse_many = sum_aper_factory(
    _aper_init_ellipse, _aper_boxextent_ellipse, _aper_rpix2_ellipse, _aper_compare1_ellipse, _aper_compare2_ellipse,
    _aper_compare3_ellipse, _aper_exact_ellipse)


@njitc(inline='always')
def _aper_init_circann(aper: np.ndarray) -> np.ndarray:
    # rin, rout, rin^2, rin_in2, rin_out2, rout^2, rout_in2, rout_out2
    rin, rout = float(aper[0]), float(aper[1])
    aper_params = np.empty(8, np.float64)
    aper_params[0] = rin
    aper_params[1] = rout
    aper_params[2] = rin*rin
    aper_params[3], aper_params[4] = oversamp_ann_circle(rin)
    aper_params[5] = rout*rout
    aper_params[6], aper_params[7] = oversamp_ann_circle(rout)
    return aper_params


@njitc(inline='always')
def _aper_boxextent_circann(x: float, y: float, w: int, h: int, aper_params: np.ndarray) \
        -> tuple[int, int, int, int, int]:
    rout = float(aper_params[1])
    return boxextent(x, y, rout, rout, w, h)


@njitc(inline='always')
def _aper_compare1_circann(rpix2: float, aper_params: np.ndarray) -> bool:
    return float(aper_params[3]) <= rpix2 < float(aper_params[7])


@njitc(inline='always')
def _aper_compare2_circann(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 >= float(aper_params[6]) or rpix2 <= float(aper_params[4])


@njitc(inline='always')
def _aper_compare3_circann(rpix2: float, aper_params: np.ndarray) -> bool:
    return float(aper_params[2]) <= rpix2 < float(aper_params[5])


@njitc(inline='always')
def _aper_exact_circann(dx: float, dy: float, aper_params: np.ndarray) -> float:
    return (circoverlap(dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, float(aper_params[1])) -
            circoverlap(dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, float(aper_params[0])))


_sum_circann, _sum_circann_many = sum_aper_factory(
    _aper_init_circann, _aper_boxextent_circann, _aper_rpix2_circle, _aper_compare1_circann, _aper_compare2_circann,
    _aper_compare3_circann, _aper_exact_circann)


@njitc(inline='always')
def _aper_init_ellipann(aper: np.ndarray) -> np.ndarray:
    # a, b, theta, rin, rout, rin^2, rin_in2, rin_out2, rout^2, rout_in2, rout_out2, cxx, cyy, cxy
    a, b, theta, rin, rout = float(aper[0]), float(aper[1]), float(aper[2]), float(aper[3]), float(aper[4])
    aper_params = np.empty(14, np.float64)
    aper_params[0] = a
    aper_params[1] = b
    aper_params[2] = theta
    aper_params[3] = rin
    aper_params[4] = rout
    aper_params[5] = rin*rin
    aper_params[6], aper_params[7] = oversamp_ann_ellipse(rin, b)
    aper_params[8] = rout*rout
    aper_params[9], aper_params[10] = oversamp_ann_ellipse(rout, b)
    aper_params[11], aper_params[12], aper_params[13] = ellipse_coeffs_scalar(a, b, theta)
    return aper_params


@njitc(inline='always')
def _aper_boxextent_ellipann(x: float, y: float, w: int, h: int, aper_params: np.ndarray) \
        -> tuple[int, int, int, int, int]:
    return boxextent_ellipse(
        x, y, float(aper_params[11]), float(aper_params[12]), float(aper_params[13]), float(aper_params[4]), w, h)


@njitc(inline='always')
def _aper_rpix2_ellipann(dx: float, dy: float, aper_params: np.ndarray) -> float:
    return float(aper_params[11])*dx**2 + float(aper_params[12])*dy**2 + float(aper_params[13])*dx*dy


@njitc(inline='always')
def _aper_compare1_ellipann(rpix2: float, aper_params: np.ndarray) -> bool:
    return float(aper_params[6]) <= rpix2 < float(aper_params[10])


@njitc(inline='always')
def _aper_compare2_ellipann(rpix2: float, aper_params: np.ndarray) -> bool:
    return rpix2 >= float(aper_params[9]) or rpix2 <= float(aper_params[7])


@njitc(inline='always')
def _aper_compare3_ellipann(rpix2: float, aper_params: np.ndarray) -> bool:
    return float(aper_params[5]) <= rpix2 < float(aper_params[8])


@njitc(inline='always')
def _aper_exact_ellipann(dx: float, dy: float, aper_params: np.ndarray) -> float:
    a = float(aper_params[0])
    b = float(aper_params[1])
    theta = float(aper_params[2])
    rin = float(aper_params[3])
    rout = float(aper_params[4])
    return (ellipoverlap(dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, a*rout, b*rout, theta) -
            ellipoverlap(dx - 0.5, dy - 0.5, dx + 0.5, dy + 0.5, a*rin, b*rin, theta))


_sum_ellipann, _sum_ellipann_many = sum_aper_factory(
    _aper_init_ellipann, _aper_boxextent_ellipann, _aper_rpix2_ellipann, _aper_compare1_ellipann,
    _aper_compare2_ellipann, _aper_compare3_ellipann, _aper_exact_ellipann)


def check_subpix(subpix: int, minimum: int = 0) -> int:
    """Return oversampling factor as int; raise :class:`IllegalSubpixel` unless it is an integer >= `minimum`"""
    if subpix != int(subpix):
        raise IllegalSubpixel('Subpixel sampling factor must be an integer, got {}'.format(subpix))
    subpix = int(subpix)
    if subpix < minimum:
        raise IllegalSubpixel('Subpixel sampling factor must be at least {}, got {}'.format(minimum, subpix))
    return subpix


def check_ellipse(a: np.ndarray, b: np.ndarray, theta: np.ndarray) -> None:
    """Raise :class:`IllegalApertureParams` unless a >= b >= 0 and -pi/2 <= theta <= pi/2"""
    if not np.all(b >= 0):
        raise IllegalApertureParams('Negative or invalid aperture semi-minor axis')
    if not np.all(a >= b):
        raise IllegalApertureParams('Aperture semi-major axis smaller than semi-minor axis')
    if not np.all((theta >= -np.pi/2) & (theta <= np.pi/2)):
        raise IllegalApertureParams('Aperture position angle must be within [-pi/2, pi/2]')


def check_annulus(rin: np.ndarray, rout: np.ndarray) -> None:
    """Raise :class:`IllegalApertureParams` unless 0 <= rin <= rout"""
    if not np.all(rin >= 0):
        raise IllegalApertureParams('Negative or invalid inner annulus radius')
    if not np.all(rout >= rin):
        raise IllegalApertureParams('Inner annulus radius must be smaller than outer annulus radius')


def broadcast_sources(x: float | np.ndarray, y: float | np.ndarray, *params: float | np.ndarray) \
        -> tuple[bool, tuple[int, ...], np.ndarray, np.ndarray, np.ndarray]:
    """
    Broadcast source positions and aperture parameters

    :return::
        * True if all inputs are scalars
        * broadcast shape
        * flattened X and Y
        * 2D array of aperture parameters, one row per source
    """
    arrays = np.broadcast_arrays(*[np.asarray(v, np.float64) for v in (x, y) + params])
    shape = arrays[0].shape
    scalar = all(np.ndim(v) == 0 for v in (x, y) + params)
    aper = np.empty((arrays[0].size, len(params)), np.float64)
    for i, p in enumerate(arrays[2:]):
        aper[:, i] = p.ravel()
    return scalar, shape, np.ascontiguousarray(arrays[0].ravel()), np.ascontiguousarray(arrays[1].ravel()), aper


def make_result(res: tuple, scalar: bool, shape: tuple[int, ...]) -> ApertureResult:
    """Pack outputs of a summation kernel driver into :class:`ApertureResult` of the given shape"""
    sumdata, sumvar, area, maskarea, flag = res
    if scalar:
        return ApertureResult(
            float(sumdata[0]), float(sumvar[0]), float(area[0]), float(maskarea[0]), ApertureFlag(int(flag[0])))
    return ApertureResult(
        sumdata.reshape(shape), sumvar.reshape(shape), area.reshape(shape), maskarea.reshape(shape),
        flag.reshape(shape))


def subtract_background(res: tuple, bkg: tuple) -> tuple:
    """
    Subtract local background estimated over an annulus from aperture sums

    :param res: aperture kernel outputs
    :param bkg: annulus kernel outputs obtained with MASK_IGNORE

    :return: aperture outputs with background-subtracted sums and propagated variance
    """
    sumdata, sumvar, area, maskarea, flag = res
    bkgsum, bkgvar, bkgarea = bkg[:3]
    ratio = np.zeros_like(area)
    np.divide(area, bkgarea, out=ratio, where=(area > 0) & (bkgarea > 0))
    return sumdata - bkgsum*ratio, sumvar + bkgvar*ratio**2, area, maskarea, flag


def sum_circle(data: np.ndarray | np.ma.MaskedArray,
               x: float | np.ndarray,
               y: float | np.ndarray,
               r: float | np.ndarray,
               err: float | np.ndarray | None = None,
               var: float | np.ndarray | None = None,
               mask: np.ndarray | None = None,
               maskthresh: float = 0.0,
               gain: float | None = None,
               subpix: int = DEFAULT_SUBPIX,
               bkgann: tuple[float | np.ndarray, float | np.ndarray] | None = None,
               mask_ignore: bool = False,
               height: int | None = None) -> ApertureResult:
    """
    Sum data in circular aperture(s)

    :param data: 2D image data array; a masked array supplies the mask unless `mask` is given
    :param x: aperture center(s) X (0-based)
    :param y: aperture center(s) Y (0-based)
    :param r: aperture radius or radii
    :param err: optional per-pixel standard deviation: scalar or array of the same shape as `data`
    :param var: optional per-pixel variance; mutually exclusive with `err`
    :param mask: optional mask array, same shape as `data`
    :param maskthresh: consider pixel masked if `mask`[i, j] > `maskthresh`
    :param gain: inverse camera gain in e-/count used to add Poisson noise; default: no Poisson noise
    :param subpix: subpixel sampling factor; 0 = exact overlap
    :param bkgann: optional (inner, outer) radii of the annulus for local background subtraction;
        the annulus is sampled at pixel centers, ignoring masked pixels
    :param mask_ignore: if True, exclude masked pixels from the total aperture area; otherwise, rescale flux and its
        variance to the total aperture area, including masked pixels
    :param height: logical image height if `data` holds a window of its rows

    :return: sum, variance, area, masked area, and flags; scalars if all inputs are scalar
    """
    subpix = check_subpix(subpix)
    if bkgann is None:
        scalar, shape, x, y, aper = broadcast_sources(x, y, r)
    else:
        scalar, shape, x, y, aper = broadcast_sources(x, y, r, *bkgann)
        aper_ann = np.ascontiguousarray(aper[:, 1:])
        aper = np.ascontiguousarray(aper[:, :1])
        check_annulus(aper_ann[:, 0], aper_ann[:, 1])
    if not np.all(aper[:, 0] >= 0):
        raise IllegalApertureParams('Negative or invalid aperture radius')
    data, noise, inflag, mask, h = prepare_image(data, err, var, mask, height)
    gain = float(gain) if gain else 0.0
    if mask_ignore:
        inflag |= MASK_IGNORE

    res = _sum_circle_many(x, y, aper, data, noise, mask, float(maskthresh), gain, inflag, subpix, h)
    if bkgann is not None:
        res = subtract_background(res, _sum_circann_many(
            x, y, aper_ann, data, noise, mask, float(maskthresh), gain, inflag | MASK_IGNORE, 1, h))
    return make_result(res, scalar, shape)


def sum_ellipse(data: np.ndarray | np.ma.MaskedArray,
                x: float | np.ndarray,
                y: float | np.ndarray,
                a: float | np.ndarray,
                b: float | np.ndarray,
                theta: float | np.ndarray,
                r: float | np.ndarray = 1.0,
                err: float | np.ndarray | None = None,
                var: float | np.ndarray | None = None,
                mask: np.ndarray | None = None,
                maskthresh: float = 0.0,
                gain: float | None = None,
                subpix: int = DEFAULT_SUBPIX,
                bkgann: tuple[float | np.ndarray, float | np.ndarray] | None = None,
                mask_ignore: bool = False,
                height: int | None = None) -> ApertureResult:
    """
    Sum data in elliptical aperture(s)

    :param data: 2D image data array
    :param x: aperture center(s) X (0-based)
    :param y: aperture center(s) Y (0-based)
    :param a: semi-major axis
    :param b: semi-minor axis, 0 <= `b` <= `a`
    :param theta: position angle of the major axis in radians CCW from the X axis, -pi/2 to pi/2
    :param r: scaling factor for the semi-axes
    :param bkgann: optional (inner, outer) scaling factors of the elliptical annulus for local background subtraction;
        sampled at pixel centers, ignoring masked pixels

    Other parameters and return value -- see :func:`sum_circle`
    """
    subpix = check_subpix(subpix)
    if bkgann is None:
        scalar, shape, x, y, aper = broadcast_sources(x, y, a, b, theta, r)
    else:
        scalar, shape, x, y, aper = broadcast_sources(x, y, a, b, theta, r, *bkgann)
        # a, b, theta, rin, rout
        aper_ann = aper[:, [0, 1, 2, 4, 5]]
        aper = np.ascontiguousarray(aper[:, :4])
        check_annulus(aper_ann[:, 3], aper_ann[:, 4])
    if not np.all(aper[:, 3] >= 0):
        raise IllegalApertureParams('Negative or invalid aperture scale')
    check_ellipse(aper[:, 0], aper[:, 1], aper[:, 2])
    data, noise, inflag, mask, h = prepare_image(data, err, var, mask, height)
    gain = float(gain) if gain else 0.0
    if mask_ignore:
        inflag |= MASK_IGNORE

    res = _sum_ellipse_many(x, y, aper, data, noise, mask, float(maskthresh), gain, inflag, subpix, h)
    if bkgann is not None:
        res = subtract_background(res, _sum_ellipann_many(
            x, y, aper_ann, data, noise, mask, float(maskthresh), gain, inflag | MASK_IGNORE, 1, h))
    return make_result(res, scalar, shape)


def sum_circann(data: np.ndarray | np.ma.MaskedArray,
                x: float | np.ndarray,
                y: float | np.ndarray,
                rin: float | np.ndarray,
                rout: float | np.ndarray,
                err: float | np.ndarray | None = None,
                var: float | np.ndarray | None = None,
                mask: np.ndarray | None = None,
                maskthresh: float = 0.0,
                gain: float | None = None,
                subpix: int = DEFAULT_SUBPIX,
                mask_ignore: bool = False,
                height: int | None = None) -> ApertureResult:
    """
    Sum data in circular annulus(es)

    :param rin: inner radius
    :param rout: outer radius, >= `rin`

    Other parameters and return value -- see :func:`sum_circle`
    """
    subpix = check_subpix(subpix)
    scalar, shape, x, y, aper = broadcast_sources(x, y, rin, rout)
    check_annulus(aper[:, 0], aper[:, 1])
    data, noise, inflag, mask, h = prepare_image(data, err, var, mask, height)
    gain = float(gain) if gain else 0.0
    if mask_ignore:
        inflag |= MASK_IGNORE

    return make_result(
        _sum_circann_many(x, y, aper, data, noise, mask, float(maskthresh), gain, inflag, subpix, h), scalar, shape)


def sum_ellipann(data: np.ndarray | np.ma.MaskedArray,
                 x: float | np.ndarray,
                 y: float | np.ndarray,
                 a: float | np.ndarray,
                 b: float | np.ndarray,
                 theta: float | np.ndarray,
                 rin: float | np.ndarray,
                 rout: float | np.ndarray,
                 err: float | np.ndarray | None = None,
                 var: float | np.ndarray | None = None,
                 mask: np.ndarray | None = None,
                 maskthresh: float = 0.0,
                 gain: float | None = None,
                 subpix: int = DEFAULT_SUBPIX,
                 mask_ignore: bool = False,
                 height: int | None = None) -> ApertureResult:
    """
    Sum data in elliptical annulus(es)

    :param a: semi-major axis
    :param b: semi-minor axis, 0 <= `b` <= `a`
    :param theta: position angle of the major axis in radians CCW from the X axis, -pi/2 to pi/2
    :param rin: inner scaling factor for the semi-axes
    :param rout: outer scaling factor, >= `rin`

    Other parameters and return value -- see :func:`sum_circle`
    """
    subpix = check_subpix(subpix)
    scalar, shape, x, y, aper = broadcast_sources(x, y, a, b, theta, rin, rout)
    check_ellipse(aper[:, 0], aper[:, 1], aper[:, 2])
    check_annulus(aper[:, 3], aper[:, 4])
    data, noise, inflag, mask, h = prepare_image(data, err, var, mask, height)
    gain = float(gain) if gain else 0.0
    if mask_ignore:
        inflag |= MASK_IGNORE

    return make_result(
        _sum_ellipann_many(x, y, aper, data, noise, mask, float(maskthresh), gain, inflag, subpix, h), scalar, shape)
