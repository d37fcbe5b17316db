"""
Tests for poretrain.core.model_io module.
"""
import pytest
import numpy as np
import json
import os
import warnings

from poretrain.core.pore_model import PoreModel
from poretrain.core.model_io import (
    load_model, save_model, load_model_with_metadata, model_to_dataframe, write_model_tsv,
)


@pytest.fixture
def sample_model():
    """k=3 model with half of the k-mers trained and non-identity globals."""
    model = PoreModel(k=3)
    np.random.seed(42)
    trained = np.arange(0, 64, 2)
    model.level_mean[trained] = np.random.uniform(60, 120, len(trained))
    model.level_stdv[trained] = 1.0
    model.shift = 4.5
    model.scale = 1.1
    model.drift = 0.002
    model.var = 1.3
    return model


class TestLoadSaveRoundTrip:
    def test_json_round_trip(self, sample_model, tmp_path):
        filepath = str(tmp_path / "model.json")
        save_model(sample_model, filepath)

        loaded = load_model(filepath)
        assert loaded.k == 3
        np.testing.assert_allclose(loaded.level_mean, sample_model.level_mean, rtol=1e-12)
        np.testing.assert_array_equal(loaded.trained_mask, sample_model.trained_mask)
        assert loaded.global_parameters() == pytest.approx(sample_model.global_parameters())
        assert loaded.is_baked

    def test_metadata_preserved(self, sample_model, tmp_path):
        filepath = str(tmp_path / "model.json")
        save_model(sample_model, filepath, metadata={'baseline_read': 'read7', 'strand': 'template'})

        _, metadata = load_model_with_metadata(filepath)
        assert metadata == {'baseline_read': 'read7', 'strand': 'template'}

    def test_json_contains_expected_keys(self, sample_model, tmp_path):
        filepath = str(tmp_path / "model.json")
        save_model(sample_model, filepath)

        with open(filepath) as f:
            data = json.load(f)

        assert data['model_type'] == 'poretrain'
        assert data['version'] == '1.0'
        assert data['k'] == 3
        assert len(data['level_mean']) == 64
        assert data['level_mean'][1] is None
        for key in ('shift', 'scale', 'drift', 'var', 'scale_sd', 'var_sd'):
            assert key in data

    def test_wrong_model_type(self, tmp_path):
        filepath = str(tmp_path / "other.json")
        with open(filepath, 'w') as f:
            json.dump({'model_type': 'hmm', 'n_states': 2}, f)
        with pytest.raises(ValueError):
            load_model(filepath)


class TestSaveRedirect:
    def test_tsv_redirects_to_json(self, sample_model, tmp_path):
        bad_path = str(tmp_path / "model.model")
        json_path = str(tmp_path / "model.json")

        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            written = save_model(sample_model, bad_path)
            assert len(w) == 1
            assert "JSON format" in str(w[0].message)

        assert written == json_path
        assert os.path.exists(json_path)
        assert not os.path.exists(bad_path)


class TestTableExport:
    def test_dataframe(self, sample_model):
        df = model_to_dataframe(sample_model)
        assert list(df.columns) == ['kmer', 'level_mean', 'level_stdv', 'trained']
        assert len(df) == 64
        assert df['kmer'].iloc[0] == 'AAA'
        assert df['kmer'].iloc[63] == 'TTT'
        assert df['trained'].sum() == 32

    def test_dataframe_alphabet_mismatch(self, sample_model, small_alphabet):
        with pytest.raises(ValueError):
            model_to_dataframe(sample_model, small_alphabet)

    def test_write_tsv(self, sample_model, tmp_path):
        filepath = str(tmp_path / "model.tsv")
        write_model_tsv(sample_model, filepath)

        with open(filepath) as f:
            lines = f.read().splitlines()

        assert lines[0] == "#k\t3"
        assert lines[1].startswith("#shift\t4.5")
        header = [l for l in lines if not l.startswith('#')][0]
        assert header == "kmer\tlevel_mean\tlevel_stdv\ttrained"
        assert len([l for l in lines if not l.startswith('#')]) == 65
