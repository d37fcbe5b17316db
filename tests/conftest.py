"""
Shared pytest fixtures for poretrain tests.
"""
import pytest
import numpy as np
import h5py

from poretrain.core.alphabet import Alphabet, DNA_ALPHABET
from poretrain.core.squiggle_read import (
    SquiggleRead, Event, IndexPair, EventRangeForBase, T_IDX,
)


def kmer_level(kmer, alphabet=DNA_ALPHABET):
    """Deterministic synthetic level for a k-mer."""
    return 60.0 + alphabet.kmer_rank(kmer)


def build_read(sequence, k, level_fn=None, multi_positions=(), gap_positions=(),
               name='read', dt=0.01, stdv=1.0, alphabet=DNA_ALPHABET):
    """
    Build a template-strand SquiggleRead in memory.

    Every k-mer position gets one event, except positions in
    multi_positions (two events) and gap_positions (no event).
    """
    if level_fn is None:
        level_fn = lambda kmer, pos: kmer_level(kmer, alphabet)

    n_kmers = len(sequence) - k + 1
    events = []
    base_to_event_map = []
    for pos in range(n_kmers):
        entry = EventRangeForBase()
        if pos not in gap_positions:
            kmer = sequence[pos:pos + k]
            n_events = 2 if pos in multi_positions else 1
            start = len(events)
            for _ in range(n_events):
                events.append(Event(mean=level_fn(kmer, pos), stdv=stdv,
                                    start=len(events) * dt, duration=dt))
            entry.indices[T_IDX] = IndexPair(start, len(events) - 1)
        base_to_event_map.append(entry)

    return SquiggleRead(name, sequence, events=[events, []],
                        base_to_event_map=base_to_event_map, basecalled_k=k)


def write_fast5(path, read_name, sequence, k, event_kmer_idx, means,
                stdv=1.0, dt=0.01, group='Basecall_1D_000', complement_events=0):
    """Write a minimal basecalled FAST5 with template Events and Fastq."""
    n = len(event_kmer_idx)
    dtype = [('mean', '<f8'), ('stdv', '<f8'), ('start', '<f8'), ('length', '<f8'),
             ('model_state', f'S{k}'), ('move', '<i4')]
    events = np.zeros(n, dtype=dtype)
    prev = event_kmer_idx[0]
    for i, (ki, m) in enumerate(zip(event_kmer_idx, means)):
        events[i] = (m, stdv, i * dt, dt, sequence[ki:ki + k].encode(), ki - prev)
        prev = ki

    with h5py.File(path, 'w') as f:
        template = f.create_group(f'/Analyses/{group}/BaseCalled_template')
        template.create_dataset('Events', data=events)
        fastq = f"@{read_name}\n{sequence}\n+\n{'5' * len(sequence)}\n"
        template.create_dataset('Fastq', data=fastq)
        if complement_events:
            complement = f.create_group(f'/Analyses/{group}/BaseCalled_complement')
            complement.create_dataset('Events', data=events[:complement_events])
    return str(path)


@pytest.fixture
def small_alphabet():
    """Two-letter alphabet: 2^k k-mers."""
    return Alphabet('AC')


@pytest.fixture
def dna():
    return DNA_ALPHABET


@pytest.fixture
def make_read():
    """Factory for in-memory reads (see build_read)."""
    return build_read


@pytest.fixture
def level_of():
    """Synthetic level used by make_read when no level_fn is given."""
    return kmer_level


@pytest.fixture
def random_sequence():
    """Factory for reproducible random DNA sequences."""
    def _make(length, seed=0):
        rng = np.random.default_rng(seed)
        return ''.join(rng.choice(list('ACGT'), size=length))
    return _make


@pytest.fixture
def fast5_file(tmp_path):
    """A basecalled FAST5 with a k=5 read including a multi-event and a skipped k-mer."""
    sequence = 'ACGTACGTAC'
    # k-mers 0..5; k-mer 1 has two events, k-mer 3 is skipped (move 2)
    event_kmer_idx = [0, 1, 1, 2, 4, 5]
    means = [80.0, 85.0, 86.0, 90.0, 95.0, 100.0]
    return write_fast5(tmp_path / 'read1.fast5', 'read1', sequence, 5,
                       event_kmer_idx, means, complement_events=3)


@pytest.fixture
def fast5_fofn(tmp_path, random_sequence):
    """Three FAST5 reads (k=5) and a fofn listing them."""
    paths = []
    for i, (length, seed) in enumerate([(300, 1), (500, 2), (200, 3)]):
        sequence = random_sequence(length, seed=seed)
        n_kmers = length - 5 + 1
        rng = np.random.default_rng(seed)
        means = [2.0 + 1.1 * kmer_level(sequence[ki:ki + 5]) + rng.normal(0, 0.3)
                 for ki in range(n_kmers)]
        paths.append(write_fast5(tmp_path / f'read{i}.fast5', f'read{i}', sequence, 5,
                                 list(range(n_kmers)), means))

    fofn = tmp_path / 'input.fofn'
    fofn.write_text('\n'.join(paths) + '\n\n')
    return str(fofn)
