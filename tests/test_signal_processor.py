"""
Unit tests for the sample window, filters and spectral estimator.
Run with:  pytest tests/
"""

from __future__ import annotations

import numpy as np
import pytest

from ppg_monitor.signal_processor import (
    SampleWindow,
    bin_to_bpm,
    detrend,
    find_peak_bpm,
    find_peak_index,
    low_pass_filter,
    magnitude_spectrum,
)


def _sine(freq_hz: float, n: int, fps: float = 30.0, amplitude: float = 5.0) -> np.ndarray:
    t = np.arange(n) / fps
    return amplitude * np.sin(2 * np.pi * freq_hz * t)


# ---------------------------------------------------------------------------
# SampleWindow tests
# ---------------------------------------------------------------------------

class TestSampleWindow:

    def test_grows_until_full(self):
        win = SampleWindow(capacity=5)
        for i in range(5):
            assert not win.is_full
            win.append(float(i))
            assert len(win) == i + 1
        assert win.is_full
        assert win.fill_ratio == 1.0

    def test_evicts_oldest_when_full(self):
        win = SampleWindow(capacity=3)
        for v in (1.0, 2.0, 3.0, 4.0, 5.0):
            win.append(v)
        assert len(win) == 3
        np.testing.assert_array_equal(win.to_array(), [3.0, 4.0, 5.0])

    def test_clear_empties_window(self):
        win = SampleWindow(capacity=3)
        win.append(1.0)
        win.clear()
        assert len(win) == 0
        assert win.fill_ratio == 0.0

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            SampleWindow(capacity=0)


# ---------------------------------------------------------------------------
# Detrender tests
# ---------------------------------------------------------------------------

class TestDetrend:

    @pytest.mark.parametrize("signal", [[], [4.0], [1.0, 5.0]])
    def test_short_signal_is_identity(self, signal):
        out = detrend(np.array(signal), radius=15)
        np.testing.assert_array_equal(out, signal)

    def test_constant_signal_becomes_zero(self):
        out = detrend(np.full(100, 100.0), radius=15)
        assert np.all(out == 0.0)

    def test_matches_clipped_moving_average(self):
        rng = np.random.default_rng(7)
        signal = rng.normal(100.0, 3.0, 60)
        radius = 5

        expected = np.empty_like(signal)
        for i in range(len(signal)):
            lo = max(0, i - radius)
            hi = min(len(signal) - 1, i + radius)
            expected[i] = signal[i] - signal[lo:hi + 1].mean()

        np.testing.assert_allclose(detrend(signal, radius), expected, atol=1e-9)

    def test_ramp_interior_is_flat(self):
        radius = 15
        out = detrend(np.arange(200, dtype=np.float64), radius)
        # Symmetric windows away from the edges average to the centre value
        np.testing.assert_allclose(out[radius:-radius], 0.0, atol=1e-9)
        # Edge windows are clipped, not padded
        assert out[0] == pytest.approx(-radius / 2)
        assert out[-1] == pytest.approx(radius / 2)

    def test_removes_slow_drift(self):
        n = 600
        drift = np.linspace(0, 40, n)
        pulse = _sine(1.25, n)
        out = detrend(100.0 + drift + pulse, radius=15)
        assert abs(out[15:-15].mean()) < 0.5


# ---------------------------------------------------------------------------
# Low-pass filter tests
# ---------------------------------------------------------------------------

class TestLowPassFilter:

    def test_empty_input(self):
        assert len(low_pass_filter(np.array([]), 0.5)) == 0

    def test_constant_passes_through(self):
        out = low_pass_filter(np.full(50, 7.5), 0.3)
        np.testing.assert_allclose(out, 7.5)

    def test_matches_recursion(self):
        rng = np.random.default_rng(3)
        x = rng.normal(0.0, 1.0, 40)
        alpha = 0.5

        expected = [x[0]]
        for v in x[1:]:
            expected.append(alpha * v + (1 - alpha) * expected[-1])

        np.testing.assert_allclose(low_pass_filter(x, alpha), expected, atol=1e-12)

    def test_first_sample_preserved(self):
        out = low_pass_filter(np.array([10.0, 0.0, 0.0]), 0.25)
        assert out[0] == pytest.approx(10.0)
        assert out[1] == pytest.approx(7.5)
        assert out[2] == pytest.approx(5.625)

    def test_alpha_one_is_identity(self):
        x = np.array([1.0, -2.0, 3.0])
        np.testing.assert_allclose(low_pass_filter(x, 1.0), x)


# ---------------------------------------------------------------------------
# Spectral estimator tests
# ---------------------------------------------------------------------------

class TestSpectralEstimator:

    @pytest.mark.parametrize("n", [10, 11, 600])
    def test_spectrum_length(self, n):
        assert len(magnitude_spectrum(np.ones(n))) == n // 2

    def test_matches_direct_dft(self):
        rng = np.random.default_rng(11)
        x = rng.normal(0.0, 1.0, 32)
        n = len(x)
        idx = np.arange(n)
        windowed = x * 0.5 * (1 - np.cos(2 * np.pi * idx / (n - 1)))

        expected = []
        for k in range(n // 2):
            real = np.sum(windowed * np.cos(2 * np.pi * k * idx / n))
            imag = -np.sum(windowed * np.sin(2 * np.pi * k * idx / n))
            expected.append(np.sqrt(real ** 2 + imag ** 2) / n)

        np.testing.assert_allclose(magnitude_spectrum(x), expected, atol=1e-12)

    @pytest.mark.parametrize("freq_hz", [1.0, 1.25, 2.0, 3.0])
    def test_sinusoid_peaks_at_its_bin(self, freq_hz):
        fps, n = 30.0, 600
        mags = magnitude_spectrum(_sine(freq_hz, n, fps))
        index = find_peak_index(mags, n, fps, min_bpm=45, max_bpm=200)
        assert index == round(freq_hz * n / fps)

    def test_find_peak_bpm_for_75_bpm(self):
        bpm = find_peak_bpm(_sine(1.25, 600), 30.0, 45, 200)
        assert bpm == pytest.approx(75.0)

    def test_zero_signal_has_no_peak(self):
        assert find_peak_bpm(np.zeros(600), 30.0, 45, 200) is None

    def test_empty_band_has_no_peak(self):
        assert find_peak_index(np.ones(5), 10, 30.0, min_bpm=1000, max_bpm=2000) is None

    def test_ties_resolve_to_lowest_bin(self):
        mags = np.array([0.0, 0.0, 3.0, 3.0, 1.0])
        assert find_peak_index(mags, 10, 10.0, min_bpm=1, max_bpm=240) == 2

    def test_dc_bin_outside_band_is_ignored(self):
        mags = np.zeros(300)
        mags[0] = 100.0
        mags[30] = 1.0
        assert find_peak_index(mags, 600, 30.0, min_bpm=45, max_bpm=200) == 30

    def test_band_upper_edge_clipped_to_spectrum(self):
        # max_bpm far beyond Nyquist still searches only existing bins
        mags = np.zeros(10)
        mags[-1] = 2.0
        assert find_peak_index(mags, 20, 30.0, min_bpm=45, max_bpm=6000) == 9

    def test_bin_to_bpm(self):
        assert bin_to_bpm(25, 600, 30.0) == pytest.approx(75.0)
        assert bin_to_bpm(20, 600, 30.0) == pytest.approx(60.0)
