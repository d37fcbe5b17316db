"""Core data structures: alphabet, reads, pore model and model I/O."""

from poretrain.core.alphabet import Alphabet, DNA_ALPHABET, KmerRankError
from poretrain.core.pore_model import PoreModel, log_probability_match
from poretrain.core.squiggle_read import (
    SquiggleRead, Event, IndexPair, EventRangeForBase, ModelState, ModelStateError,
    T_IDX, C_IDX, build_event_map, load_fast5, read_fofn,
)
from poretrain.core.model_io import load_model, save_model, load_model_with_metadata
