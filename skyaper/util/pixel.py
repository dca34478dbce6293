"""
Pixel access for aperture photometry kernels

:func:`~get_converter()`: resolve a pixel type tag into a raw element decoder.

:func:`~as_pixel_array()`: build an image from a raw typed buffer or check that an array has a supported pixel type.

:func:`~window_row()`: map a logical image row to a row of a buffer holding a window of the image.

:func:`~prepare_image()`: check and normalize the data, error, and mask arrays passed to a photometry function.
"""

from enum import IntEnum
from typing import Any, Callable

import numpy as np

from .errors import UnsupportedPixelFormat
from .overlap import njitc
from ..photometry.flags import ERROR_IS_ARRAY, ERROR_IS_VAR


__all__ = ['PixelType', 'get_converter', 'pixel_type', 'as_pixel_array', 'window_row', 'prepare_image']


class PixelType(IntEnum):
    """Pixel type tags, same codes as in SEP"""
    BYTE = 11
    INT = 31
    FLOAT = 42
    DOUBLE = 82


_PIXEL_DTYPES = {
    PixelType.BYTE: np.dtype(np.uint8),
    PixelType.INT: np.dtype(np.int32),
    PixelType.FLOAT: np.dtype(np.float32),
    PixelType.DOUBLE: np.dtype(np.float64),
}

_DTYPE_KINDS = {
    ('u', 1): PixelType.BYTE,
    ('b', 1): PixelType.BYTE,
    ('i', 4): PixelType.INT,
    ('f', 4): PixelType.FLOAT,
    ('f', 8): PixelType.DOUBLE,
}


def _resolve(tag: Any) -> tuple[PixelType, np.dtype]:
    """Return pixel type and the dtype used to decode raw elements of that type"""
    if isinstance(tag, (int, np.integer)) and not isinstance(tag, (bool, np.bool_)):
        try:
            ptype = PixelType(int(tag))
        except ValueError:
            raise UnsupportedPixelFormat('Unknown pixel type code {}'.format(tag)) from None
        return ptype, _PIXEL_DTYPES[ptype]

    try:
        dtype = np.dtype(tag)
    except TypeError:
        raise UnsupportedPixelFormat('Unknown pixel type {!r}'.format(tag)) from None
    try:
        ptype = _DTYPE_KINDS[dtype.kind, dtype.itemsize]
    except KeyError:
        raise UnsupportedPixelFormat('Unsupported pixel type {}'.format(dtype)) from None
    return ptype, dtype


def pixel_type(tag: Any) -> PixelType:
    """
    Return the pixel type for the given tag

    :param tag: :class:`PixelType`, SEP pixel type code, or anything accepted by :class:`numpy.dtype`

    :return: pixel type; raises :class:`UnsupportedPixelFormat` if the tag is not recognized
    """
    return _resolve(tag)[0]


def get_converter(tag: Any) -> tuple[Callable[[Any], np.ndarray], int]:
    """
    Return the decoder for raw elements of the given pixel type

    Numpy dtype tags keep their byte order, so big-endian (e.g. FITS) buffers are decoded correctly.

    :param tag: pixel type tag, see :func:`pixel_type`

    :return: function converting a bytes-like object with one or more raw elements into a float64 array, and the size
        of a single element in bytes
    """
    dtype = _resolve(tag)[1]

    def convert(raw: Any) -> np.ndarray:
        return np.frombuffer(raw, dtype).astype(np.float64)

    return convert, dtype.itemsize


def as_pixel_array(buf: Any, ptype: Any = None, shape: tuple[int, int] | None = None) -> np.ndarray:
    """
    Return 2D pixel array usable by photometry kernels

    :param buf: numpy array or a raw bytes-like buffer
    :param ptype: pixel type tag of a raw buffer, see :func:`pixel_type`; ignored for arrays
    :param shape: (height, width) of a raw buffer

    :return: input array, its native byte order copy, or its uint8 view for boolean arrays; decoded float64 array for
        a raw buffer
    """
    if isinstance(buf, (bytes, bytearray, memoryview)):
        if ptype is None or shape is None:
            raise ValueError('Pixel type and shape are required for a raw buffer')
        convert, size = get_converter(ptype)
        if len(memoryview(buf).cast('B')) != shape[0]*shape[1]*size:
            raise ValueError('Raw buffer size does not match shape {}x{}'.format(*shape))
        return convert(buf).reshape(shape)

    arr = np.asarray(buf)
    if arr.dtype == np.bool_:
        return arr.view(np.uint8)
    pixel_type(arr.dtype)
    if not arr.dtype.isnative:
        arr = arr.astype(arr.dtype.newbyteorder())
    return arr


@njitc(inline='always')
def window_row(iy: int, nrows: int) -> int:
    """
    Physical row of logical image row `iy` in a buffer holding `nrows` rows of the image

    Buffers that hold the whole image map each row to itself; a strip buffer is reused cyclically as the resident
    window moves down a larger image.
    """
    return iy % nrows


def prepare_image(data: np.ndarray | np.ma.MaskedArray,
                  err: float | np.ndarray | None = None,
                  var: float | np.ndarray | None = None,
                  mask: np.ndarray | None = None,
                  height: int | None = None) -> tuple[np.ndarray, np.ndarray, int, np.ndarray | None, int]:
    """
    Helper function for photometry functions used to check and initialize the arrays common to all of them

    :param data: 2D image data array or its window; a masked array supplies the mask if `mask` is not given
    :param err: optional scalar or 2D array of per-pixel standard deviations, same shape as `data`
    :param var: optional scalar or 2D array of per-pixel variances; mutually exclusive with `err`
    :param mask: optional 2D mask array, same shape as `data`
    :param height: logical image height if `data` holds a window of a taller image; default: number of rows in `data`

    :return::
        * data array
        * noise array: scalar noise is stored as a 1x1 array
        * input option flags (ERROR_IS_VAR and/or ERROR_IS_ARRAY)
        * mask array or None
        * logical image height
    """
    if isinstance(data, np.ma.MaskedArray):
        if mask is None and data.mask is not np.ma.nomask:
            mask = np.ma.getmaskarray(data)
        data = data.data
    data = as_pixel_array(data)
    if data.ndim != 2:
        raise ValueError('Data array must be 2D')
    data_shape = data.shape

    # Check if noise is error or variance
    if err is not None and var is not None:
        raise ValueError('Cannot specify both err and var')
    inflag = 0
    if err is not None:
        noise = err
    else:
        noise = var
        inflag |= ERROR_IS_VAR
    if noise is None:
        noise = np.zeros((1, 1), np.float64)
    elif np.ndim(noise) == 0:
        noise = np.full((1, 1), float(noise), np.float64)
    elif np.ndim(noise) == 2:
        if np.shape(noise) != data_shape:
            raise ValueError('Size of error array must match data')
        noise = as_pixel_array(noise)
        inflag |= ERROR_IS_ARRAY
    else:
        raise ValueError('Error array must be 0-d or 2-d')

    if mask is not None:
        mask = as_pixel_array(mask)
        if mask.shape != data_shape:
            raise ValueError('Size of mask array must match data')

    if height is None:
        height = data_shape[0]
    else:
        height = int(height)
        if height < data_shape[0]:
            raise ValueError('Image height must not be less than the number of rows in the data buffer')

    return data, noise, inflag, mask, height
