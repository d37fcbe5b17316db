"""
Pore model training pipeline.

Phases run strictly in order, each over all reads:
1. Align every read's k-mers to events and collect per k-mer observations
2. Select the baseline read (most aligned events)
3. Estimate and bake the initial model from the baseline read
4. Assign a copy of the model to every read
5. Realign with only the usable k-mers and recalibrate each read
"""

import sys
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from poretrain.core.alphabet import Alphabet, DNA_ALPHABET
from poretrain.core.pore_model import PoreModel
from poretrain.core.squiggle_read import SquiggleRead, T_IDX, load_fast5, read_fofn
from poretrain.training.alignment import generate_alignment_to_basecalls
from poretrain.training.estimator import estimate_initial_model
from poretrain.training.recalibration import recalibrate_model, MIN_EVENTS_TO_RESCALE
from poretrain.training.training_data import (
    alignment_to_training_data, select_baseline_read, training_rows,
)


DEFAULT_KMER_SIZE = 5

RECALIBRATION_COLUMNS = ['read_idx', 'read_name', 'events', 'alignment',
                         'shift', 'scale', 'drift', 'var', 'recalibrated']


@dataclass
class TrainingOptions:
    """Settings for one training run."""
    k: Optional[int] = None
    strand_idx: int = T_IDX
    scale_drift: bool = False
    scale_var: bool = True
    min_recalibration_events: int = MIN_EVENTS_TO_RESCALE
    verbose: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RecalibrationSummary:
    read_idx: int
    read_name: str
    events: int
    alignment: int
    shift: float
    scale: float
    drift: float
    var: float
    recalibrated: bool

    def format(self) -> str:
        return (f"[recalibration] events: {self.events} alignment: {self.alignment} "
                f"shift: {self.shift:.2f} scale: {self.scale:.2f} "
                f"drift: {self.drift:.4f} var: {self.var:.2f}")


@dataclass
class TrainingResult:
    """Everything produced by train_pore_model."""
    model: PoreModel
    use_kmer: np.ndarray
    k: int
    baseline_index: int
    read_totals: List[int]
    training_frames: List[pd.DataFrame] = field(default_factory=list)
    recalibrations: List[RecalibrationSummary] = field(default_factory=list)

    def recalibration_table(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(r) for r in self.recalibrations], columns=RECALIBRATION_COLUMNS)


def load_reads(fofn_path: str, basecall_group: str = 'Basecall_1D_000') -> List[SquiggleRead]:
    """Load every FAST5 listed in a file-of-filenames."""
    reads = []
    for fast5_name in read_fofn(fofn_path):
        print(f"Loading {fast5_name}", file=sys.stderr)
        reads.append(load_fast5(fast5_name, basecall_group=basecall_group))
    print(f"Loaded {len(reads)} reads", file=sys.stderr)
    return reads


def infer_kmer_size(reads: Sequence[SquiggleRead], default: int = DEFAULT_KMER_SIZE) -> int:
    """
    K-mer size of the basecaller, taken from the reads.

    Raises:
        ValueError: reads disagree on k
    """
    sizes = {r.basecalled_k for r in reads if r.basecalled_k is not None}
    if len(sizes) > 1:
        raise ValueError(f"Reads were basecalled with different k-mer sizes: {sorted(sizes)}")
    return sizes.pop() if sizes else default


def train_pore_model(reads: Sequence[SquiggleRead], options: Optional[TrainingOptions] = None,
                     alphabet: Alphabet = DNA_ALPHABET) -> TrainingResult:
    """
    Train a pore model from basecalled reads and recalibrate each read to it.

    Args:
        reads: Loaded reads; each read's strand model is replaced and recalibrated
        options: TrainingOptions (defaults if None)
        alphabet: Alphabet used to rank k-mers

    Returns:
        TrainingResult

    Raises:
        ValueError: no reads, or options.k differs from the k the reads were
            basecalled with (their event maps are built for that k)
        KmerRankError: a read k-mer cannot be ranked in the alphabet
    """
    if options is None:
        options = TrainingOptions()
    if len(reads) == 0:
        raise ValueError("No reads to train on")

    if options.k is not None:
        k = options.k
        mismatched = [r.read_name for r in reads
                      if r.basecalled_k is not None and r.basecalled_k != k]
        if mismatched:
            raise ValueError(
                f"k={k} does not match the basecalled k-mer size of "
                f"{len(mismatched)} read(s) (first: {mismatched[0]})"
            )
    else:
        k = infer_kmer_size(reads)
    strand = options.strand_idx
    verbose = options.verbose

    # Collect per-read training data. No read's data depends on another's.
    read_training_data = []
    training_frames = []
    for read_idx, read in enumerate(tqdm(reads, desc="Collecting", disable=not verbose)):
        alignment = generate_alignment_to_basecalls(read, k, strand, alphabet)
        read_training_data.append(
            alignment_to_training_data(read, alignment, k, alphabet,
                                       model_var=read.current_model_var(strand))
        )
        training_frames.append(training_rows(read_idx, read, alignment))

    # Baseline selection needs every read's totals
    baseline_index, totals = select_baseline_read(read_training_data, verbose=verbose)

    pore_model, use_kmer = estimate_initial_model(read_training_data[baseline_index], k,
                                                  verbose=verbose)

    for read in reads:
        read.assign_baseline_model(strand, pore_model)

    recalibrations = []
    for read_idx, read in enumerate(tqdm(reads, desc="Recalibrating", disable=not verbose)):
        alignment = generate_alignment_to_basecalls(read, k, strand, alphabet, use_kmer=use_kmer)
        recalibrated = recalibrate_model(read, strand, alignment, alphabet,
                                         scale_drift=options.scale_drift,
                                         scale_var=options.scale_var,
                                         min_events=options.min_recalibration_events)
        read_model = read.pore_model[strand]
        recalibrations.append(RecalibrationSummary(
            read_idx=read_idx,
            read_name=read.read_name,
            events=len(read.events[strand]),
            alignment=len(alignment),
            shift=read_model.shift,
            scale=read_model.scale,
            drift=read_model.drift,
            var=read_model.var,
            recalibrated=recalibrated,
        ))

    return TrainingResult(
        model=pore_model,
        use_kmer=use_kmer,
        k=k,
        baseline_index=baseline_index,
        read_totals=totals,
        training_frames=training_frames,
        recalibrations=recalibrations,
    )
