"""Tests for ellipse parameter conversions."""

import numpy as np
import pytest

from skyaper.util.ellipse import ellipse_axes, ellipse_coeffs
from skyaper.util.errors import NonEllipseParams


class TestEllipseConversion:
    @pytest.mark.parametrize('theta', [-1.4, -np.pi/4, -0.3, 0.0, 0.5, np.pi/4, 1.2, np.pi/2])
    def test_round_trip(self, theta):
        """Coefficients convert back to the original parameters for every orientation."""
        a, b, t = ellipse_axes(*ellipse_coeffs(3.0, 1.5, theta))
        assert a == pytest.approx(3.0, rel=1e-12)
        assert b == pytest.approx(1.5, rel=1e-12)
        assert t == pytest.approx(theta, abs=1e-12)

    def test_circle(self):
        """Circle has zero position angle."""
        a, b, theta = ellipse_axes(0.25, 0.25, 0.0)
        assert (a, b, theta) == (pytest.approx(2.0), pytest.approx(2.0), 0.0)

    def test_major_axis_along_y(self):
        """Axis-aligned ellipse elongated along Y has position angle pi/2."""
        a, b, theta = ellipse_axes(1.0, 0.25, 0.0)
        assert a == pytest.approx(2.0)
        assert b == pytest.approx(1.0)
        assert theta == pytest.approx(np.pi/2)

    def test_coeffs(self):
        """Axis-aligned ellipse coefficients."""
        cxx, cyy, cxy = ellipse_coeffs(2.0, 1.0, 0.0)
        assert cxx == pytest.approx(0.25)
        assert cyy == pytest.approx(1.0)
        assert cxy == pytest.approx(0.0)

    def test_arrays(self):
        """Array inputs give arrays of the broadcast shape."""
        theta = np.linspace(-1.5, 1.5, 6).reshape(2, 3)
        a, b, t = ellipse_axes(*ellipse_coeffs(2.0, 1.0, theta))
        assert a.shape == b.shape == t.shape == (2, 3)
        assert np.allclose(t, theta)

    @pytest.mark.parametrize('coeffs', [(1.0, -1.0, 0.0), (1.0, 1.0, 3.0), (-1.0, -1.0, 0.0)])
    def test_not_ellipse(self, coeffs):
        """Coefficients of a non-ellipse are rejected."""
        with pytest.raises(NonEllipseParams) as excinfo:
            ellipse_axes(*coeffs)
        assert excinfo.value.status == 5
