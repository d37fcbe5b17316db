"""
poretrain pore model module

Provides:
1. PoreModel: per k-mer Gaussian level parameters plus global
   shift/scale/drift/var read parameters
2. Baking of scaled (read-specific) Gaussian parameters
3. Log-likelihood of an observed event under a k-mer's baked parameters

Model I/O (load/save) lives in poretrain.core.model_io.
"""

import copy
import numpy as np
from typing import Optional, Dict, Any


LOG_INV_SQRT_2PI = -0.5 * np.log(2 * np.pi)


class PoreModel:
    """
    Per k-mer signal level model.

    Per k-mer parameters (indexed by k-mer rank):
        level_mean: Expected event mean (NaN = never trained, unusable)
        level_stdv: Expected event spread

    Global parameters map model levels onto a read's raw signal:
        observed = level_mean * scale + shift + drift * time

    The baked arrays (scaled_mean, scaled_stdv, log_scaled_stdv) are derived
    from both and must be refreshed with bake_gaussian_parameters() after
    either changes.
    """

    def __init__(self, k: int = 5, n_kmers: Optional[int] = None):
        self.k = k
        self.n_kmers = n_kmers if n_kmers is not None else 4 ** k

        self.level_mean = np.full(self.n_kmers, np.nan)
        self.level_stdv = np.full(self.n_kmers, np.nan)

        # Identity transform until a read recalibrates it
        self.shift: float = 0.0
        self.scale: float = 1.0
        self.drift: float = 0.0
        self.var: float = 1.0
        self.scale_sd: float = 1.0
        self.var_sd: float = 1.0

        # Baked versions (computed when needed)
        self.scaled_mean: Optional[np.ndarray] = None
        self.scaled_stdv: Optional[np.ndarray] = None
        self.log_scaled_stdv: Optional[np.ndarray] = None

    @property
    def is_baked(self) -> bool:
        return self.scaled_mean is not None

    @property
    def trained_mask(self) -> np.ndarray:
        """Boolean mask of k-mers with a trained level."""
        return ~np.isnan(self.level_mean)

    def bake_gaussian_parameters(self):
        """Precompute read-scaled Gaussian parameters for every k-mer."""
        self.scaled_mean = self.level_mean * self.scale + self.shift
        self.scaled_stdv = self.level_stdv * self.var
        with np.errstate(divide='ignore', invalid='ignore'):
            self.log_scaled_stdv = np.log(self.scaled_stdv)

    def log_probability(self, level: float, kmer_rank: int) -> float:
        """
        Gaussian log density of a (drift corrected) level for one k-mer.

        Raises:
            ValueError: if the model has not been baked
        """
        if not self.is_baked:
            raise ValueError("PoreModel must be baked before scoring")

        mean = self.scaled_mean[kmer_rank]
        stdv = self.scaled_stdv[kmer_rank]
        z = (level - mean) / stdv
        return float(LOG_INV_SQRT_2PI - self.log_scaled_stdv[kmer_rank] - 0.5 * z * z)

    def copy(self) -> 'PoreModel':
        """Independent deep copy (arrays included)."""
        return copy.deepcopy(self)

    def global_parameters(self) -> Dict[str, float]:
        return {
            'shift': self.shift,
            'scale': self.scale,
            'drift': self.drift,
            'var': self.var,
            'scale_sd': self.scale_sd,
            'var_sd': self.var_sd,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize model to dictionary. Untrained levels become None."""
        def _nan_to_none(a):
            return [None if np.isnan(x) else float(x) for x in a]

        d = {
            'k': self.k,
            'n_kmers': self.n_kmers,
            'level_mean': _nan_to_none(self.level_mean),
            'level_stdv': _nan_to_none(self.level_stdv),
        }
        d.update(self.global_parameters())
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'PoreModel':
        """Deserialize model from dictionary. Result is baked."""
        model = cls(k=d['k'], n_kmers=d.get('n_kmers'))
        if len(d['level_mean']) != model.n_kmers or len(d['level_stdv']) != model.n_kmers:
            raise ValueError(
                f"Expected {model.n_kmers} k-mer states, got "
                f"{len(d['level_mean'])} means / {len(d['level_stdv'])} stdvs"
            )
        model.level_mean = np.array([np.nan if x is None else x for x in d['level_mean']], dtype=float)
        model.level_stdv = np.array([np.nan if x is None else x for x in d['level_stdv']], dtype=float)
        for name in ('shift', 'scale', 'drift', 'var', 'scale_sd', 'var_sd'):
            if name in d:
                setattr(model, name, float(d[name]))
        model.bake_gaussian_parameters()
        return model

    def __repr__(self) -> str:
        return (f"PoreModel(k={self.k}, trained={int(self.trained_mask.sum())}/{self.n_kmers}, "
                f"shift={self.shift:.2f}, scale={self.scale:.2f}, "
                f"drift={self.drift:.4f}, var={self.var:.2f})")


def log_probability_match(read, kmer_rank: int, event_idx: int, strand_idx: int) -> float:
    """
    Score how well a k-mer explains one event of a read.

    Uses the read's own (recalibrated) model for the strand, applied to the
    drift-corrected event level.
    """
    model = read.pore_model[strand_idx]
    if model is None:
        raise ValueError(f"Read {read.read_name} has no pore model for strand {strand_idx}")
    level = read.get_drift_corrected_level(event_idx, strand_idx)
    return model.log_probability(level, kmer_rank)
