"""Tests for aperture and annulus summation."""

import numpy as np
import pytest

from skyaper.photometry.aperture import ApertureResult, sum_circann, sum_circle, sum_ellipann, sum_ellipse
from skyaper.photometry.flags import ApertureFlag
from skyaper.util.errors import IllegalApertureParams, IllegalSubpixel, UnsupportedPixelFormat

from .conftest import SOURCE


X, Y = 30.3, 31.7


class TestCircle:
    def test_exact_area(self, uniform_image):
        """Exact overlap reproduces the circle area."""
        res = sum_circle(uniform_image, X, Y, 5.0, subpix=0)
        assert isinstance(res, ApertureResult)
        assert res.area == pytest.approx(np.pi*25, abs=1e-8)
        assert res.sum == pytest.approx(np.pi*25, abs=1e-8)
        assert res.maskarea == 0
        assert res.flag == 0

    def test_subpixel_area(self, uniform_image):
        """Oversampled area is close to the circle area."""
        res = sum_circle(uniform_image, X, Y, 5.0, subpix=5)
        assert res.area == pytest.approx(np.pi*25, rel=1e-2)

    def test_area_monotonic(self, uniform_image):
        """Area grows with radius."""
        r = np.linspace(0, 10, 41)
        res = sum_circle(uniform_image, X, Y, r, subpix=0)
        assert res.area.shape == r.shape
        assert res.area[0] == 0
        assert np.all(np.diff(res.area) > 0)

    def test_total_flux(self, gaussian_image):
        """Large aperture captures the whole source."""
        x, y, flux, sigma = SOURCE
        res = sum_circle(gaussian_image, x, y, 8*sigma)
        assert res.sum == pytest.approx(flux, rel=1e-3)

    def test_truncation(self, uniform_image):
        """Flag is set if and only if the aperture box is clipped by the image."""
        res = sum_circle(uniform_image, [2.0, 30.0, 61.5], [30.0, 30.0, 30.0], 3.0)
        assert res.flag.tolist() == [ApertureFlag.TRUNC, 0, ApertureFlag.TRUNC]
        assert res.area[0] < res.area[1]

    def test_scalar_and_array_output(self, uniform_image):
        """Scalar inputs give scalars; arrays broadcast."""
        res = sum_circle(uniform_image, X, Y, 3.0)
        assert isinstance(res.sum, float)
        assert isinstance(res.flag, ApertureFlag)
        res = sum_circle(uniform_image, np.full((2, 3), X), Y, [1.0, 2.0, 3.0])
        assert res.sum.shape == res.flag.shape == (2, 3)

    def test_error(self, uniform_image):
        """Scalar and array errors propagate to variance."""
        res = sum_circle(uniform_image, X, Y, 4.0, err=2.0, subpix=0)
        assert res.sumvar == pytest.approx(4*res.area)
        assert res.sumerr == pytest.approx(2*np.sqrt(res.area))
        res_arr = sum_circle(uniform_image, X, Y, 4.0, var=np.full(uniform_image.shape, 4.0), subpix=0)
        assert res_arr.sumvar == pytest.approx(res.sumvar)

    def test_gain(self, uniform_image):
        """Poisson noise is added for positive gain."""
        res = sum_circle(uniform_image, X, Y, 4.0, err=1.0, gain=2.0)
        assert res.sumvar == pytest.approx(res.area + res.sum/2)

    def test_mask_rescale(self, uniform_image):
        """Default policy rescales flux to the full aperture area."""
        mask = np.zeros(uniform_image.shape, bool)
        mask[30:33, 29:32] = True
        res = sum_circle(uniform_image, X, Y, 5.0, mask=mask, subpix=0)
        assert res.flag == ApertureFlag.HASMASKED
        assert res.maskarea == pytest.approx(9)
        assert res.area == pytest.approx(np.pi*25)
        assert res.sum == pytest.approx(np.pi*25)

    def test_mask_ignore(self, uniform_image):
        """Ignore policy removes masked area."""
        mask = np.zeros(uniform_image.shape, np.uint8)
        mask[30:33, 29:32] = 1
        res = sum_circle(uniform_image, X, Y, 5.0, mask=mask, subpix=0, mask_ignore=True)
        assert res.area == pytest.approx(np.pi*25 - 9)
        assert res.sum == pytest.approx(res.area)

    def test_all_masked(self, uniform_image):
        """Fully masked aperture gives zero flux."""
        res = sum_circle(uniform_image, X, Y, 5.0, mask=np.ones(uniform_image.shape), err=1.0)
        assert res.sum == 0
        assert res.sumvar == 0
        assert res.area == res.maskarea
        assert res.flag & ApertureFlag.HASMASKED

    def test_mask_threshold(self, uniform_image):
        """Pixels are masked only above threshold."""
        mask = np.full(uniform_image.shape, 0.5)
        res = sum_circle(uniform_image, X, Y, 5.0, mask=mask, maskthresh=0.5)
        assert res.flag == 0

    def test_masked_array(self, uniform_image):
        """Masked array input supplies the mask."""
        mask = np.zeros(uniform_image.shape, bool)
        mask[30:33, 29:32] = True
        ma = np.ma.masked_array(uniform_image, mask)
        assert sum_circle(ma, X, Y, 5.0, mask_ignore=True) == \
            sum_circle(uniform_image, X, Y, 5.0, mask=mask, mask_ignore=True)

    def test_window(self, gaussian_image):
        """Window of image rows gives the same result as the full image."""
        x, y = SOURCE[:2]
        nrows = 16
        window = np.empty((nrows, gaussian_image.shape[1]))
        for iy in range(int(y) - 8, int(y) + 8):
            window[iy % nrows] = gaussian_image[iy]
        res = sum_circle(window, x, y, 5.0, err=1.0, height=gaussian_image.shape[0])
        assert res == sum_circle(gaussian_image, x, y, 5.0, err=1.0)

    def test_pixel_types(self, gaussian_image):
        """Supported pixel types give consistent results."""
        x, y = SOURCE[:2]
        ref = sum_circle(gaussian_image.astype(np.float32), x, y, 5.0)
        for dtype in ('>f4', '<f8'):
            assert sum_circle(gaussian_image.astype(dtype), x, y, 5.0).sum == pytest.approx(ref.sum, rel=1e-6)
        img = (gaussian_image*100).astype(np.int32)
        assert sum_circle(img, x, y, 5.0).sum == pytest.approx(sum_circle(img.astype(float), x, y, 5.0).sum)

    def test_bkgann(self, gaussian_image):
        """Local background annulus removes a constant background."""
        x, y, flux = SOURCE[:3]
        res = sum_circle(gaussian_image + 10.0, x, y, 10.0, bkgann=(20.0, 25.0), subpix=0)
        assert res.sum == pytest.approx(sum_circle(gaussian_image, x, y, 10.0, subpix=0).sum, rel=1e-3)

    def test_bkgann_flat(self, uniform_image):
        """Constant image gives zero background-subtracted flux."""
        res = sum_circle(uniform_image, X, Y, [3.0, 4.0], err=1.0, bkgann=(6.0, 9.0), subpix=0)
        assert res.sum == pytest.approx([0, 0], abs=1e-8)
        assert np.all(res.sumvar > res.area)

    def test_bkgann_pixel_centers(self, gaussian_image):
        """Background annulus is sampled at pixel centers whatever the aperture sampling."""
        x, y = SOURCE[:2]
        img = gaussian_image + np.linspace(0, 5, gaussian_image.size).reshape(gaussian_image.shape)
        mask = np.zeros(img.shape, bool)
        mask[int(y) + 7, :] = True
        for subpix in (0, 5):
            res = sum_circle(img, x, y, 4.0, err=1.0, mask=mask, bkgann=(6.5, 9.3), subpix=subpix)
            ap = sum_circle(img, x, y, 4.0, err=1.0, mask=mask, subpix=subpix)
            bkg = sum_circann(img, x, y, 6.5, 9.3, err=1.0, mask=mask, subpix=1, mask_ignore=True)
            ratio = ap.area/bkg.area
            assert res.sum == pytest.approx(ap.sum - bkg.sum*ratio, rel=1e-12)
            assert res.sumvar == pytest.approx(ap.sumvar + bkg.sumvar*ratio**2, rel=1e-12)


class TestEllipse:
    def test_exact_area(self, uniform_image):
        """Exact overlap reproduces the ellipse area."""
        res = sum_ellipse(uniform_image, X, Y, 4.0, 2.0, 0.7, r=1.5, subpix=0)
        assert res.area == pytest.approx(np.pi*6*3, abs=1e-8)

    def test_circle(self, gaussian_image):
        """Ellipse with equal axes matches circle."""
        x, y = SOURCE[:2]
        for subpix in (0, 5):
            assert sum_ellipse(gaussian_image, x, y, 2.0, 2.0, 0.3, r=2.0, subpix=subpix).sum == pytest.approx(
                sum_circle(gaussian_image, x, y, 4.0, subpix=subpix).sum, rel=1e-10)

    def test_bkgann(self, uniform_image):
        """Elliptical background annulus removes a constant background."""
        res = sum_ellipse(uniform_image*5, X, Y, 3.0, 2.0, -0.4, bkgann=(2.0, 3.0), subpix=0)
        assert res.sum == pytest.approx(0, abs=1e-8)

    def test_bkgann_pixel_centers(self, gaussian_image):
        """Elliptical background annulus is sampled at pixel centers."""
        x, y = SOURCE[:2]
        img = gaussian_image + np.linspace(0, 5, gaussian_image.size).reshape(gaussian_image.shape)
        res = sum_ellipse(img, x, y, 3.0, 2.0, -0.4, r=1.5, bkgann=(2.2, 3.1), subpix=0)
        ap = sum_ellipse(img, x, y, 3.0, 2.0, -0.4, r=1.5, subpix=0)
        bkg = sum_ellipann(img, x, y, 3.0, 2.0, -0.4, 2.2, 3.1, subpix=1, mask_ignore=True)
        assert res.sum == pytest.approx(ap.sum - bkg.sum*ap.area/bkg.area, rel=1e-12)

    def test_degenerate(self, uniform_image):
        """Zero semi-minor axis encloses no area."""
        res = sum_ellipse(uniform_image, X, Y, 3.0, 0.0, 0.0)
        assert res.area == 0
        assert res.sum == 0


class TestAnnulus:
    def test_circann(self, gaussian_image):
        """Circular annulus is the difference of two circles."""
        x, y = SOURCE[:2]
        ann = sum_circann(gaussian_image, x, y, 2.0, 6.0, subpix=0)
        assert ann.sum == pytest.approx(
            sum_circle(gaussian_image, x, y, 6.0, subpix=0).sum - sum_circle(gaussian_image, x, y, 2.0, subpix=0).sum,
            rel=1e-10)
        assert ann.area == pytest.approx(np.pi*32, abs=1e-8)

    def test_circann_zero_inner(self, gaussian_image):
        """Annulus with zero inner radius is a circle."""
        x, y = SOURCE[:2]
        assert sum_circann(gaussian_image, x, y, 0.0, 5.0).sum == pytest.approx(
            sum_circle(gaussian_image, x, y, 5.0).sum, rel=1e-10)

    def test_ellipann(self, uniform_image):
        """Elliptical annulus area."""
        res = sum_ellipann(uniform_image, X, Y, 2.0, 1.0, 1.1, 1.5, 3.0, subpix=0)
        assert res.area == pytest.approx(np.pi*2*(9 - 2.25), abs=1e-8)

    def test_ellipann_subpix(self, gaussian_image):
        """Oversampled elliptical annulus is close to the exact one."""
        x, y = SOURCE[:2]
        exact = sum_ellipann(gaussian_image, x, y, 2.0, 1.5, 0.2, 1.0, 2.0, subpix=0)
        approx = sum_ellipann(gaussian_image, x, y, 2.0, 1.5, 0.2, 1.0, 2.0, subpix=10)
        assert approx.sum == pytest.approx(exact.sum, rel=1e-2)


class TestValidation:
    @pytest.mark.parametrize('r', [-1.0, np.nan])
    def test_radius(self, uniform_image, r):
        """Negative or NaN radius."""
        with pytest.raises(IllegalApertureParams):
            sum_circle(uniform_image, X, Y, r)

    def test_subpix(self, uniform_image):
        """Negative oversampling factor."""
        with pytest.raises(IllegalSubpixel):
            sum_circle(uniform_image, X, Y, 3.0, subpix=-1)

    @pytest.mark.parametrize('subpix', [2.7, 0.5])
    def test_subpix_fraction(self, uniform_image, subpix):
        """Non-integer oversampling factor."""
        with pytest.raises(IllegalSubpixel):
            sum_circle(uniform_image, X, Y, 3.0, subpix=subpix)
        with pytest.raises(IllegalSubpixel):
            sum_ellipse(uniform_image, X, Y, 3.0, 2.0, 0.0, subpix=subpix)

    @pytest.mark.parametrize('a, b, theta', [(1.0, 2.0, 0.0), (2.0, -1.0, 0.0), (2.0, 1.0, 2.0)])
    def test_ellipse(self, uniform_image, a, b, theta):
        """Invalid ellipse parameters."""
        with pytest.raises(IllegalApertureParams):
            sum_ellipse(uniform_image, X, Y, a, b, theta)
        with pytest.raises(IllegalApertureParams):
            sum_ellipann(uniform_image, X, Y, a, b, theta, 1.0, 2.0)

    def test_annulus(self, uniform_image):
        """Inner radius must not exceed outer radius."""
        with pytest.raises(IllegalApertureParams):
            sum_circann(uniform_image, X, Y, 3.0, 2.0)
        with pytest.raises(IllegalApertureParams):
            sum_circle(uniform_image, X, Y, 1.0, bkgann=(3.0, 2.0))

    def test_pixel_type(self):
        """Unsupported data type."""
        with pytest.raises(UnsupportedPixelFormat):
            sum_circle(np.ones((10, 10), np.int16), 5.0, 5.0, 2.0)

    def test_position_mismatch(self, uniform_image):
        """Positions that do not broadcast."""
        with pytest.raises(ValueError):
            sum_circle(uniform_image, [1.0, 2.0], [1.0, 2.0, 3.0], 2.0)
