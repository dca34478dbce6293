"""
SkyAper aperture photometry functions.

aperture: flux in circular and elliptical apertures and annuli
auto: Kron ("AUTO") aperture photometry
flags: output flags, input options, and constants
geometry: aperture bounding boxes and oversampling thresholds
profile: multi-annulus radial profiles and flux radii
shape: Kron radius and ellipse masks
"""
