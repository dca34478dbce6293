"""
Aperture photometry flags and constants

Plain integer constants are used inside jitted code; :class:`ApertureFlag` and :class:`ApertureOption` are their named
counterparts for Python callers, bit-compatible with SEP.
"""

from enum import IntFlag


__all__ = [
    'APER_TRUNC', 'APER_HASMASKED', 'APER_ALLMASKED', 'APER_NONPOSITIVE',
    'ERROR_IS_VAR', 'ERROR_IS_ARRAY', 'MASK_IGNORE',
    'ApertureFlag', 'ApertureOption',
    'OVERSAMP_MARGIN', 'BIG', 'FLUX_RADIUS_BUFSIZE', 'DEFAULT_SUBPIX',
]


# Output flags
APER_TRUNC = 0x0010
APER_HASMASKED = 0x0020
APER_ALLMASKED = 0x0040
APER_NONPOSITIVE = 0x0080

# Input options
ERROR_IS_VAR = 0x0001
ERROR_IS_ARRAY = 0x0002
MASK_IGNORE = 0x0004

# Half-diagonal of a unit pixel, rounded up
OVERSAMP_MARGIN = 0.7072

# Pixels below -BIG are bad
BIG = 1e30

# Number of annuli used for flux radius estimation
FLUX_RADIUS_BUFSIZE = 64

DEFAULT_SUBPIX = 5


class ApertureFlag(IntFlag):
    """Conditions reported alongside a successful measurement"""
    TRUNC = APER_TRUNC
    HASMASKED = APER_HASMASKED
    ALLMASKED = APER_ALLMASKED
    NONPOSITIVE = APER_NONPOSITIVE


class ApertureOption(IntFlag):
    """Input options of aperture summation kernels"""
    ERROR_IS_VAR = 0x0001
    ERROR_IS_ARRAY = 0x0002
    MASK_IGNORE = 0x0004
