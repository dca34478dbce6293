#!/usr/bin/env python

from setuptools import setup

setup(
    name='SkyAper',
    version='1.0.0',
    description='Parallel aperture photometry core for astronomical images',
    provides=['skyaper'],
    packages=['skyaper', 'skyaper.photometry', 'skyaper.util'],
    python_requires='>=3.10',
    install_requires=['numpy', 'numba'],
    extras_require={
        'test': ['pytest', 'sep'],
    },
)
