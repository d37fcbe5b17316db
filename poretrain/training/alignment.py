"""
Event-to-kmer alignment taken directly from the basecaller's event map.

Only k-mer positions that map to exactly one event are kept, so training
data is never built from merged or skipped events.
"""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from poretrain.core.alphabet import Alphabet, KmerRankError


@dataclass
class EventAlignment:
    """A read k-mer position bound to a single event."""
    ref_kmer: str
    ref_position: int
    strand_idx: int
    event_idx: int
    hmm_state: str = 'M'


def checked_kmer_rank(alphabet: Alphabet, kmer: str, k: int) -> int:
    """Rank a k-mer, failing hard if the rank falls outside the alphabet."""
    num_kmers = alphabet.get_num_strings(k)
    rank = alphabet.kmer_rank(kmer, k)
    if not 0 <= rank < num_kmers:
        raise KmerRankError(f"Rank {rank} of k-mer '{kmer}' outside alphabet of {num_kmers} {k}-mers")
    return rank


def generate_alignment_to_basecalls(read, k: int, strand_idx: int, alphabet: Alphabet,
                                    use_kmer: Optional[np.ndarray] = None) -> List[EventAlignment]:
    """
    Align read k-mers to events using the read's base-to-event map.

    Args:
        read: SquiggleRead
        k: K-mer length
        strand_idx: Strand to align
        alphabet: Alphabet used to rank k-mers
        use_kmer: Optional boolean mask by k-mer rank; masked-out k-mers are skipped

    Returns:
        Alignment entries in increasing read position

    Raises:
        KmerRankError: a k-mer cannot be ranked inside the alphabet
    """
    alignment = []
    read_sequence = read.read_sequence
    n_kmers = min(len(read_sequence) - k + 1, len(read.base_to_event_map))

    for ki in range(max(n_kmers, 0)):
        event_range = read.base_to_event_map[ki].indices[strand_idx]

        # skip kmers without events and with multiple events
        if event_range.start == -1 or event_range.start != event_range.stop:
            continue

        kmer = read_sequence[ki:ki + k]
        kmer_rank = checked_kmer_rank(alphabet, kmer, k)

        if use_kmer is not None and not use_kmer[kmer_rank]:
            continue

        alignment.append(EventAlignment(
            ref_kmer=kmer,
            ref_position=ki,
            strand_idx=strand_idx,
            event_idx=event_range.start,
        ))

    return alignment
