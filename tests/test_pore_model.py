"""
Tests for poretrain.core.pore_model module.
"""
import pytest
import numpy as np

from poretrain.core.pore_model import PoreModel, log_probability_match
from poretrain.core.squiggle_read import T_IDX


@pytest.fixture
def trained_model():
    """k=2 model with every k-mer trained."""
    model = PoreModel(k=2)
    model.level_mean = 70.0 + np.arange(16, dtype=float)
    model.level_stdv = np.full(16, 1.5)
    return model


class TestPoreModelDefaults:
    def test_identity_globals(self):
        model = PoreModel(k=5)
        assert (model.shift, model.scale, model.drift, model.var) == (0.0, 1.0, 0.0, 1.0)
        assert model.scale_sd == 1.0
        assert model.var_sd == 1.0

    def test_untrained_states(self):
        model = PoreModel(k=3)
        assert model.n_kmers == 64
        assert np.all(np.isnan(model.level_mean))
        assert not model.trained_mask.any()
        assert not model.is_baked

    def test_custom_kmer_count(self):
        assert PoreModel(k=3, n_kmers=8).level_mean.shape == (8,)


class TestBake:
    def test_scaled_parameters(self, trained_model):
        trained_model.shift = 5.0
        trained_model.scale = 2.0
        trained_model.var = 1.2
        trained_model.bake_gaussian_parameters()

        np.testing.assert_allclose(trained_model.scaled_mean, 2.0 * trained_model.level_mean + 5.0)
        np.testing.assert_allclose(trained_model.scaled_stdv, 1.5 * 1.2)
        np.testing.assert_allclose(trained_model.log_scaled_stdv, np.log(1.8))

    def test_idempotent(self, trained_model):
        trained_model.bake_gaussian_parameters()
        first = (trained_model.scaled_mean.copy(), trained_model.scaled_stdv.copy(),
                 trained_model.log_scaled_stdv.copy())
        trained_model.bake_gaussian_parameters()
        np.testing.assert_array_equal(trained_model.scaled_mean, first[0])
        np.testing.assert_array_equal(trained_model.scaled_stdv, first[1])
        np.testing.assert_array_equal(trained_model.log_scaled_stdv, first[2])

    def test_untrained_stay_nan(self):
        model = PoreModel(k=2)
        model.level_mean[3] = 80.0
        model.level_stdv[3] = 1.0
        model.bake_gaussian_parameters()
        assert np.isfinite(model.scaled_mean[3])
        assert np.isnan(model.scaled_mean[0])


class TestLogProbability:
    def test_requires_bake(self, trained_model):
        with pytest.raises(ValueError):
            trained_model.log_probability(70.0, 0)

    def test_peak_at_scaled_mean(self, trained_model):
        trained_model.bake_gaussian_parameters()
        at_mean = trained_model.log_probability(75.0, 5)
        off_mean = trained_model.log_probability(77.0, 5)
        assert at_mean > off_mean
        expected = -0.5 * np.log(2 * np.pi) - np.log(1.5)
        assert at_mean == pytest.approx(expected)

    def test_match_uses_drift_corrected_level(self, make_read, trained_model):
        read = make_read('ACGTA', 2, level_fn=lambda kmer, pos: 80.0, dt=1.0)
        trained_model.drift = 1.0
        trained_model.bake_gaussian_parameters()
        read.assign_baseline_model(T_IDX, trained_model)

        # event 3 at time 3 -> corrected level 77.0
        score = log_probability_match(read, 7, 3, T_IDX)
        assert score == pytest.approx(trained_model.log_probability(77.0, 7))

    def test_match_without_model(self, make_read):
        read = make_read('ACGTA', 2)
        with pytest.raises(ValueError):
            log_probability_match(read, 0, 0, T_IDX)


class TestSerialization:
    def test_copy_is_independent(self, trained_model):
        clone = trained_model.copy()
        clone.level_mean[0] = -1.0
        clone.scale = 3.0
        assert trained_model.level_mean[0] == 70.0
        assert trained_model.scale == 1.0

    def test_dict_round_trip_keeps_untrained(self):
        model = PoreModel(k=2)
        model.level_mean[4] = 88.5
        model.level_stdv[4] = 1.0
        model.shift = 3.0

        d = model.to_dict()
        assert d['level_mean'][0] is None
        restored = PoreModel.from_dict(d)

        assert restored.is_baked
        assert restored.shift == 3.0
        np.testing.assert_array_equal(restored.trained_mask, model.trained_mask)
        assert restored.level_mean[4] == 88.5

    def test_from_dict_length_mismatch(self):
        d = PoreModel(k=2).to_dict()
        d['level_mean'] = d['level_mean'][:-1]
        with pytest.raises(ValueError):
            PoreModel.from_dict(d)
