"""Shared pytest fixtures for the SkyAper test suite."""

import numpy as np
import pytest


# Image geometry
IMAGE_SHAPE = (64, 64)

# Injected source: (x, y, total flux, sigma)
SOURCE = (31.3, 32.6, 1e4, 2.5)


def gaussian_2d(shape: tuple[int, int], x0: float, y0: float, flux: float, sigma: float) -> np.ndarray:
    """Circular 2D Gaussian with the given total flux sampled at pixel centers."""
    y, x = np.mgrid[:shape[0], :shape[1]]
    return flux/(2*np.pi*sigma**2)*np.exp(-((x - x0)**2 + (y - y0)**2)/(2*sigma**2))


@pytest.fixture
def uniform_image() -> np.ndarray:
    """Image of all ones."""
    return np.ones(IMAGE_SHAPE, np.float64)


@pytest.fixture
def gaussian_image() -> np.ndarray:
    """Single Gaussian source on a zero background."""
    return gaussian_2d(IMAGE_SHAPE, *SOURCE)


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(42)
