"""Tests for Kron aperture photometry."""

import logging

import numpy as np
import pytest

from skyaper.photometry.aperture import sum_circle, sum_ellipse
from skyaper.photometry.auto import AutoResult, sum_auto
from skyaper.photometry.flags import ApertureFlag
from skyaper.photometry.shape import kron_radius

from .conftest import SOURCE


class TestSumAuto:
    def test_gaussian(self, gaussian_image):
        """Kron aperture captures nearly all flux of a Gaussian."""
        x, y, flux, sigma = SOURCE
        res = sum_auto(gaussian_image, x, y, sigma, sigma, 0.0, err=1.0)
        assert isinstance(res, AutoResult)
        assert isinstance(res.flag, ApertureFlag)
        assert res.kronrad == pytest.approx(np.sqrt(np.pi/2), rel=3e-2)
        assert res.sum == pytest.approx(flux, rel=2e-2)
        assert res.sum < flux
        assert res.sumerr == pytest.approx(np.sqrt(res.area))

    def test_matches_ellipse(self, gaussian_image):
        """Sum within the scaled Kron ellipse."""
        x, y = SOURCE[:2]
        a, b, theta = 3.0, 2.0, 0.5
        res = sum_auto(gaussian_image, x, y, a, b, theta, kfactor=2.0)
        kr = kron_radius(gaussian_image, x, y, a, b, theta, 6.0)[0]
        assert res.kronrad == kr
        assert res.sum == sum_ellipse(gaussian_image, x, y, a, b, theta, r=2.0*kr).sum

    def test_circular_fallback(self, gaussian_image, caplog):
        """Small Kron ellipses fall back to a fixed circular aperture."""
        x, y = SOURCE[:2]
        with caplog.at_level(logging.DEBUG):
            res = sum_auto(gaussian_image, x, y, 0.1, 0.1, 0.0)
        assert res.kronrad*0.1 < 1.75
        ref = sum_circle(gaussian_image, x, y, 1.75)
        assert res.sum == ref.sum
        assert res.area == ref.area
        assert 'circular aperture' in caplog.text

    def test_kron_flags(self, gaussian_image):
        """Kron step flags are included."""
        res = sum_auto(-gaussian_image, SOURCE[0], SOURCE[1], 2.0, 2.0, 0.0)
        assert res.flag & ApertureFlag.NONPOSITIVE
        assert res.kronrad == 0

    def test_array(self, gaussian_image):
        """Array inputs mixing both aperture kinds."""
        x, y = SOURCE[:2]
        res = sum_auto(gaussian_image, [[x, x]], [[y, y]], [[2.5, 0.1]], [[2.5, 0.1]], 0.0)
        assert res.sum.shape == res.flag.shape == res.kronrad.shape == (1, 2)
        assert res.sum[0, 0] == sum_auto(gaussian_image, x, y, 2.5, 2.5, 0.0).sum
        assert res.sum[0, 1] == sum_circle(gaussian_image, x, y, 1.75).sum
