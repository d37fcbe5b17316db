"""
Initial pore model estimation from the baseline read.

Each k-mer's level is the median of its observed event means. Spread is not
estimated per k-mer (level_stdv = 1.0) and is left to the global var
parameter.
"""

from typing import Sequence, Tuple

import numpy as np

from poretrain.core.pore_model import PoreModel
from poretrain.training.training_data import KmerTrainingData


DEFAULT_LEVEL_STDV = 1.0


def median_level(values: Sequence[float]) -> float:
    """
    Median of a non-empty list; even counts average the two central values.
    """
    n = len(values)
    if n == 0:
        raise ValueError("median of empty sequence")
    ordered = sorted(values)
    if n % 2 == 0:
        return (ordered[n // 2 - 1] + ordered[n // 2]) / 2.0
    return ordered[n // 2]


def estimate_initial_model(kmer_training_data: KmerTrainingData, k: int,
                           verbose: bool = False) -> Tuple[PoreModel, np.ndarray]:
    """
    Build the initial model from one read's training data.

    Args:
        kmer_training_data: Baseline read's observations indexed by k-mer rank
        k: K-mer length
        verbose: Print each trained k-mer's median and values

    Returns:
        (baked PoreModel, usable k-mer mask)
    """
    num_kmers = len(kmer_training_data)
    pore_model = PoreModel(k=k, n_kmers=num_kmers)
    use_kmer = np.zeros(num_kmers, dtype=bool)

    for ki, observations in enumerate(kmer_training_data):
        if len(observations) == 0:
            continue

        values = [obs.level_mean for obs in observations]
        median = median_level(values)

        use_kmer[ki] = True
        pore_model.level_mean[ki] = median
        pore_model.level_stdv[ki] = DEFAULT_LEVEL_STDV
        if verbose:
            print(f"k: {ki} median: {median:.2f} values: {' '.join(f'{v:g}' for v in values)}")

    pore_model.bake_gaussian_parameters()
    return pore_model, use_kmer
