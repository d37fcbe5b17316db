"""
poretrain model I/O module

Saves and loads pore models as JSON (human-readable, portable). Untrained
k-mers are stored as null and restored as NaN.

A tab-separated export (one row per k-mer) is also provided for inspection.
"""

import json
import os
import warnings
from typing import Optional, Tuple, Dict, Any

import pandas as pd

from poretrain.core.alphabet import Alphabet, DNA_ALPHABET
from poretrain.core.pore_model import PoreModel


MODEL_TYPE = 'poretrain'
MODEL_VERSION = '1.0'


def save_model(model: PoreModel, filepath: str, metadata: Optional[Dict[str, Any]] = None):
    """
    Save model to file in JSON format.

    If the filepath does not end in .json, the extension is replaced with .json
    and a warning is issued.

    Args:
        model: PoreModel
        filepath: Output path (.json)
        metadata: Extra JSON-serializable values stored alongside the model
    """
    if not filepath.endswith('.json'):
        old_path = filepath
        base, _ = os.path.splitext(filepath)
        filepath = base + '.json'
        warnings.warn(
            f"Only JSON format is supported for saving. "
            f"Saving to '{filepath}' instead of '{old_path}'."
        )

    data = {
        'model_type': MODEL_TYPE,
        'version': MODEL_VERSION,
    }
    data.update(model.to_dict())
    data['metadata'] = metadata or {}
    with open(filepath, 'w') as f:
        json.dump(data, f, indent=2)
    return filepath


def load_model_with_metadata(filepath: str) -> Tuple[PoreModel, Dict[str, Any]]:
    """
    Load model and its metadata.

    Returns:
        (model, metadata)
    """
    with open(filepath, 'r') as f:
        data = json.load(f)

    if data.get('model_type') != MODEL_TYPE:
        raise ValueError(f"{filepath} is not a {MODEL_TYPE} model (model_type={data.get('model_type')!r})")

    return PoreModel.from_dict(data), data.get('metadata', {})


def load_model(filepath: str) -> PoreModel:
    """Load a (baked) model from a JSON file."""
    model, _ = load_model_with_metadata(filepath)
    return model


def model_to_dataframe(model: PoreModel, alphabet: Alphabet = DNA_ALPHABET) -> pd.DataFrame:
    """One row per k-mer: kmer, level_mean, level_stdv, trained."""
    if alphabet.get_num_strings(model.k) != model.n_kmers:
        raise ValueError(f"{alphabet} does not match a model with {model.n_kmers} {model.k}-mers")
    return pd.DataFrame({
        'kmer': [alphabet.unrank(i, model.k) for i in range(model.n_kmers)],
        'level_mean': model.level_mean,
        'level_stdv': model.level_stdv,
        'trained': model.trained_mask,
    })


def write_model_tsv(model: PoreModel, filepath: str, alphabet: Alphabet = DNA_ALPHABET):
    """Write the per k-mer table with the global parameters as '#name value' header lines."""
    df = model_to_dataframe(model, alphabet)
    with open(filepath, 'w') as f:
        f.write(f"#k\t{model.k}\n")
        for name, value in model.global_parameters().items():
            f.write(f"#{name}\t{value}\n")
        df.to_csv(f, sep='\t', index=False, na_rep='nan')
