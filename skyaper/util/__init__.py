"""
SkyAper utility functions.

ellipse: ellipse parameter conversions
errors: photometry exceptions
overlap: exact overlap of pixels with circles and ellipses; JIT decorator
pixel: pixel types, windowed images, and input preparation
"""
