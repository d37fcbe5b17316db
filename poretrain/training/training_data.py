"""
Per-read k-mer training data: collection, baseline read selection and the
trainmodel.tsv diagnostics table.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import pandas as pd

from poretrain.core.alphabet import Alphabet
from poretrain.training.alignment import EventAlignment, checked_kmer_rank


TRAINING_TSV_COLUMNS = ['read_idx', 'kmer', 'level_mean', 'duration']


@dataclass
class StateTrainingData:
    """One event observation of a k-mer."""
    level_mean: float
    level_stdv: float
    model_var: float


# Indexed by k-mer rank, then observation
KmerTrainingData = List[List[StateTrainingData]]


def alignment_to_training_data(read, alignment: Sequence[EventAlignment], k: int,
                               alphabet: Alphabet, model_var: float) -> KmerTrainingData:
    """
    Convert an alignment into per k-mer observations for one read.

    Args:
        read: SquiggleRead the alignment was made from
        alignment: Output of generate_alignment_to_basecalls
        k: K-mer length
        alphabet: Alphabet used to rank k-mers
        model_var: Model variance recorded with every observation (the read's
            current model var; 1.0 before any model exists)

    Returns:
        List of length alphabet.get_num_strings(k) of observation lists
    """
    kmer_training_data: KmerTrainingData = [[] for _ in range(alphabet.get_num_strings(k))]

    for a in alignment:
        kmer_rank = checked_kmer_rank(alphabet, a.ref_kmer, k)
        event = read.events[a.strand_idx][a.event_idx]
        kmer_training_data[kmer_rank].append(
            StateTrainingData(event.mean, event.stdv, model_var)
        )

    return kmer_training_data


def count_training_events(kmer_training_data: KmerTrainingData) -> int:
    """Total observations over all k-mers."""
    return sum(len(observations) for observations in kmer_training_data)


def select_baseline_read(read_training_data: Sequence[KmerTrainingData],
                         verbose: bool = False) -> Tuple[int, List[int]]:
    """
    Pick the read with the most aligned events. Ties go to the earliest read.

    Returns:
        (baseline read index, per-read totals)
    """
    if len(read_training_data) == 0:
        raise ValueError("No reads to select a baseline from")

    max_events = 0
    max_events_index = 0
    totals = []
    for rti, kmer_training_data in enumerate(read_training_data):
        total_events = count_training_events(kmer_training_data)
        totals.append(total_events)
        if verbose:
            print(f"read {rti} has {total_events} events (max: {max_events}, {max_events_index})")

        if total_events > max_events:
            max_events = total_events
            max_events_index = rti

    return max_events_index, totals


def training_rows(read_idx: int, read, alignment: Sequence[EventAlignment]) -> pd.DataFrame:
    """Diagnostics rows (read_idx, kmer, level_mean, duration) for one read's alignment."""
    rows = []
    for a in alignment:
        event = read.events[a.strand_idx][a.event_idx]
        rows.append((read_idx, a.ref_kmer, event.mean, event.duration))
    return pd.DataFrame(rows, columns=TRAINING_TSV_COLUMNS)


def write_training_tsv(filepath: str, frames: Sequence[pd.DataFrame], include_rows: bool = True):
    """
    Write trainmodel.tsv. The header is always written; rows only when
    include_rows is set.
    """
    non_empty = [f for f in frames if len(f) > 0]
    if include_rows and non_empty:
        df = pd.concat(non_empty, ignore_index=True)
    else:
        df = pd.DataFrame(columns=TRAINING_TSV_COLUMNS)
    df.to_csv(filepath, sep='\t', index=False, float_format='%.5f')
