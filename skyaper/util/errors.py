"""
Exceptions raised by aperture photometry functions

Every exception carries the status code of the equivalent SEP C library error in its `status` attribute.
"""

__all__ = [
    'ApertureError', 'IllegalApertureParams', 'IllegalSubpixel', 'NonEllipseParams', 'UnsupportedPixelFormat',
]


class ApertureError(ValueError):
    """Base class for aperture photometry input errors"""
    status = -1


class UnsupportedPixelFormat(ApertureError):
    """Data, error, or mask array has a pixel type that cannot be converted"""
    status = 3


class IllegalSubpixel(ApertureError):
    """Invalid oversampling factor"""
    status = 4


class NonEllipseParams(ApertureError):
    """Quadratic form coefficients do not describe an ellipse"""
    status = 5


class IllegalApertureParams(ApertureError):
    """Aperture radius, semi-axes, or position angle out of range"""
    status = 6
