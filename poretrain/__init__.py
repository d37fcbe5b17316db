"""
poretrain - Train nanopore pore models (k-mer -> signal level) from
basecalled reads and recalibrate each read's scaling parameters.
"""

__version__ = "0.1.0"

from poretrain.core.alphabet import Alphabet, DNA_ALPHABET, KmerRankError
from poretrain.core.pore_model import PoreModel, log_probability_match
from poretrain.core.squiggle_read import SquiggleRead, load_fast5
from poretrain.core.model_io import load_model, save_model, load_model_with_metadata
from poretrain.training.pipeline import TrainingOptions, train_pore_model
