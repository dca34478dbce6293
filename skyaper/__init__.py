"""
SkyAper: parallel aperture photometry core for astronomical images.

photometry: aperture sums, radial profiles, Kron radius, and AUTO photometry
util: exact pixel overlap, pixel formats, ellipse conversions, errors
"""
