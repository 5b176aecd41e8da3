"""Tests for per-frame feature extraction."""

import numpy as np
import pytest

from conftest import make_snapshot
from pulsefield.core.analyzer import (
    FeatureConfig,
    FeatureExtractor,
    band_edges,
    dominant_bin,
    key_hue,
)


class TestBandEdges:
    @pytest.mark.parametrize("bin_count", [1, 2, 3, 7, 20, 64, 100, 333, 512, 1000, 1024, 4096])
    def test_partition_covers_every_bin_once(self, bin_count):
        bass_end, mid_end = band_edges(bin_count)
        assert 0 <= bass_end <= mid_end <= bin_count

        membership = np.zeros(bin_count, dtype=int)
        membership[:bass_end] += 1
        membership[bass_end:mid_end] += 1
        membership[mid_end:] += 1
        assert np.all(membership == 1)

    @pytest.mark.parametrize("bin_count", [20, 100, 1024, 999])
    def test_edges_follow_fractional_boundaries(self, bin_count):
        """Bin i is bass iff i < 0.15 N, mid iff i < 0.50 N."""
        bass_end, mid_end = band_edges(bin_count)
        # Integer ceilings avoid float error in the expectation itself
        assert bass_end == -(-bin_count * 15 // 100)
        assert mid_end == -(-bin_count * 50 // 100)

    def test_zero_bins(self):
        assert band_edges(0) == (0, 0)

    def test_custom_fractions(self):
        cfg = FeatureConfig(bass_fraction=0.25, mid_fraction=0.25)
        assert band_edges(100, cfg) == (25, 50)


class TestFeatureConfig:
    def test_negative_fraction_rejected(self):
        with pytest.raises(ValueError):
            FeatureConfig(bass_fraction=-0.1)

    def test_fractions_over_one_rejected(self):
        with pytest.raises(ValueError):
            FeatureConfig(bass_fraction=0.6, mid_fraction=0.5)


class TestFeatureExtractor:
    def test_band_means(self):
        bins = np.zeros(1024, dtype=np.uint8)
        bass_end, mid_end = band_edges(1024)
        bins[:bass_end] = 90
        bins[bass_end:mid_end] = 60
        bins[mid_end:] = 30

        features = FeatureExtractor().extract(make_snapshot(bins))
        assert features.bass == pytest.approx(90.0)
        assert features.mid == pytest.approx(60.0)
        assert features.treble == pytest.approx(30.0)

    def test_overall_energy_is_mean_of_all_bins(self):
        bins = np.arange(1024) % 256
        features = FeatureExtractor().extract(make_snapshot(bins))
        assert features.overall_energy == pytest.approx(float(np.mean(bins)))

    def test_dominant_frequency_for_single_peak(self):
        bins = np.zeros(1024, dtype=np.uint8)
        bins[100] = 255
        features = FeatureExtractor().extract(make_snapshot(bins))
        assert features.dominant_frequency_hz == pytest.approx(100 * 44100 / 2048)
        assert features.dominant_frequency_hz == pytest.approx(2153.3, abs=0.1)

    def test_dominant_frequency_is_monotonic_in_peak_index(self):
        extractor = FeatureExtractor()
        freqs = []
        for k in (1, 10, 100, 500, 1023):
            bins = np.zeros(1024, dtype=np.uint8)
            bins[k] = 200
            freqs.append(extractor.extract(make_snapshot(bins)).dominant_frequency_hz)
        assert freqs == sorted(freqs)
        assert len(set(freqs)) == len(freqs)

    def test_dominant_bin_tie_takes_lowest(self):
        bins = np.zeros(16, dtype=np.uint8)
        bins[3] = bins[9] = 180
        assert dominant_bin(bins) == 3

    def test_silence_is_not_a_beat(self, silent_snapshot):
        features = FeatureExtractor().extract(silent_snapshot)
        assert not features.is_beat
        assert features.overall_energy == 0.0
        assert features.dominant_frequency_hz == 0.0

    def test_loud_spectrum_is_a_beat(self, loud_snapshot):
        assert FeatureExtractor().extract(loud_snapshot).is_beat

    def test_bass_alone_can_flag_a_beat(self):
        bins = np.zeros(1024, dtype=np.uint8)
        bass_end, _ = band_edges(1024)
        bins[:bass_end] = 150
        features = FeatureExtractor().extract(make_snapshot(bins))
        assert features.overall_energy < 120
        assert features.is_beat

    def test_thresholds_are_strict(self):
        bins = np.zeros(1024, dtype=np.uint8)
        bass_end, _ = band_edges(1024)
        bins[:bass_end] = 140
        assert not FeatureExtractor().extract(make_snapshot(bins)).is_beat

    def test_features_carry_the_snapshot(self, silent_snapshot):
        features = FeatureExtractor().extract(silent_snapshot)
        assert features.spectrum is silent_snapshot
        assert not features.is_transient
        assert not features.is_accepted_beat


class TestKeyHue:
    def test_middle_c_maps_to_200(self):
        assert key_hue(261.0) == pytest.approx(200.0)

    def test_wraps_every_360_hz(self):
        assert key_hue(621.0) == pytest.approx(key_hue(261.0))

    def test_below_middle_c(self):
        assert key_hue(100.0) == pytest.approx(39.0)
        assert key_hue(0.0) == pytest.approx(299.0)

    @pytest.mark.parametrize("freq", [0.0, 55.0, 440.0, 2153.3, 11025.0, 22050.0])
    def test_range(self, freq):
        assert 0.0 <= key_hue(freq) < 360.0
