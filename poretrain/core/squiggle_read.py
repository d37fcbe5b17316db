"""
Read module for poretrain
Loads basecalled nanopore reads (events + sequence) from FAST5 files and
builds the map from read k-mer positions to event index ranges.

FAST5 layout (basecaller output):
    /Analyses/<basecall_group>/BaseCalled_template/Events
        mean, stdv, start, length, model_state, move
    /Analyses/<basecall_group>/BaseCalled_template/Fastq
"""

import os
import numpy as np
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence
import h5py

from poretrain.core.pore_model import PoreModel


# Strand indices
T_IDX = 0
C_IDX = 1
STRAND_NAMES = ('template', 'complement')
STRAND_SUBGROUPS = ('BaseCalled_template', 'BaseCalled_complement')


class ModelState(Enum):
    """Lifecycle of a read's per-strand pore model."""
    UNINITIALIZED = 'uninitialized'
    BASELINE_ASSIGNED = 'baseline_assigned'
    RECALIBRATED = 'recalibrated'


class ModelStateError(RuntimeError):
    """A model operation was attempted from the wrong ModelState."""


@dataclass
class Event:
    """One segment of raw signal."""
    mean: float
    stdv: float
    start: float = 0.0
    duration: float = 0.0


@dataclass
class IndexPair:
    """Inclusive event index range for one k-mer. start == -1 means unset."""
    start: int = -1
    stop: int = -1

    @property
    def is_set(self) -> bool:
        return self.start != -1


@dataclass
class EventRangeForBase:
    """Event ranges of one read k-mer position, one IndexPair per strand."""
    indices: List[IndexPair] = field(default_factory=lambda: [IndexPair(), IndexPair()])


class SquiggleRead:
    """Basecalled read with per-strand events, event map and pore model."""

    def __init__(self, read_name: str, read_sequence: str,
                 events: Optional[Sequence[List[Event]]] = None,
                 base_to_event_map: Optional[List[EventRangeForBase]] = None,
                 basecalled_k: Optional[int] = None):
        self.read_name = read_name
        self.read_sequence = read_sequence
        self.basecalled_k = basecalled_k
        self.events: List[List[Event]] = [list(e) for e in events] if events else [[], []]
        while len(self.events) < 2:
            self.events.append([])
        self.base_to_event_map: List[EventRangeForBase] = base_to_event_map or []

        self.pore_model: List[Optional[PoreModel]] = [None, None]
        self.model_state: List[ModelState] = [ModelState.UNINITIALIZED, ModelState.UNINITIALIZED]

    @property
    def n_kmers(self) -> int:
        return len(self.base_to_event_map)

    def get_time(self, event_idx: int, strand_idx: int) -> float:
        """Event start time relative to the first event of the strand."""
        events = self.events[strand_idx]
        return events[event_idx].start - events[0].start

    def get_uncorrected_level(self, event_idx: int, strand_idx: int) -> float:
        return self.events[strand_idx][event_idx].mean

    def get_drift_corrected_level(self, event_idx: int, strand_idx: int) -> float:
        model = self.pore_model[strand_idx]
        level = self.get_uncorrected_level(event_idx, strand_idx)
        if model is None:
            return level
        return level - model.drift * self.get_time(event_idx, strand_idx)

    def assign_baseline_model(self, strand_idx: int, model: PoreModel):
        """Give this strand its own copy of the baseline model."""
        self.pore_model[strand_idx] = model.copy()
        self.model_state[strand_idx] = ModelState.BASELINE_ASSIGNED

    def current_model_var(self, strand_idx: int) -> float:
        """Variance of the strand's model, or the PoreModel default when none is assigned."""
        model = self.pore_model[strand_idx]
        return model.var if model is not None else PoreModel().var

    def __repr__(self) -> str:
        return (f"SquiggleRead({self.read_name!r}, length={len(self.read_sequence)}, "
                f"events={len(self.events[T_IDX])}/{len(self.events[C_IDX])})")


def build_event_map(n_kmers: int, moves: Sequence[int], strand_idx: int = T_IDX,
                    base_to_event_map: Optional[List[EventRangeForBase]] = None) -> List[EventRangeForBase]:
    """
    Build the k-mer position -> event range map from basecaller moves.

    The first event opens k-mer 0. An event with move > 0 closes the current
    k-mer's range at the previous event and opens k-mer (current + move);
    k-mers jumped over by move > 1 stay unset.

    Args:
        n_kmers: Number of k-mers in the read sequence (len - k + 1)
        moves: Per-event move values
        strand_idx: Strand to fill
        base_to_event_map: Existing map to fill (other strand kept), or None

    Returns:
        List of EventRangeForBase, one per k-mer position
    """
    if base_to_event_map is None:
        base_to_event_map = [EventRangeForBase() for _ in range(n_kmers)]

    if n_kmers <= 0 or len(moves) == 0:
        return base_to_event_map

    if moves[0] != 0:
        raise ValueError(f"First event must have move 0, got {moves[0]}")

    curr_k_idx = 0
    base_to_event_map[0].indices[strand_idx].start = 0
    for ei in range(1, len(moves)):
        move = int(moves[ei])
        if move > 0:
            base_to_event_map[curr_k_idx].indices[strand_idx].stop = ei - 1
            curr_k_idx += move
            if curr_k_idx >= n_kmers:
                raise ValueError(
                    f"Event moves walk past the end of the sequence "
                    f"(k-mer {curr_k_idx} of {n_kmers})"
                )
            base_to_event_map[curr_k_idx].indices[strand_idx].start = ei

    base_to_event_map[curr_k_idx].indices[strand_idx].stop = len(moves) - 1
    return base_to_event_map


# =============================================================================
# FAST5 loading
# =============================================================================

def _decode(value) -> str:
    if isinstance(value, bytes):
        return value.decode()
    if isinstance(value, np.ndarray):
        return _decode(value.tolist())
    return str(value)


def _read_events(events_ds) -> List[Event]:
    """Convert an Events dataset to Event objects."""
    data = events_ds[()]
    names = data.dtype.names
    length = data['length'] if 'length' in names else np.zeros(len(data))
    start = data['start'] if 'start' in names else np.zeros(len(data))
    return [Event(mean=float(m), stdv=float(s), start=float(t), duration=float(d))
            for m, s, t, d in zip(data['mean'], data['stdv'], start, length)]


def load_fast5(fast5_path: str, basecall_group: str = 'Basecall_1D_000') -> SquiggleRead:
    """
    Load a basecalled read from a FAST5 file.

    Args:
        fast5_path: Path to FAST5 file
        basecall_group: Group under /Analyses holding the basecall

    Returns:
        SquiggleRead with template (and, if present, complement) events and
        the template event map
    """
    if not os.path.exists(fast5_path):
        raise FileNotFoundError(f"FAST5 file not found: {fast5_path}")

    group_path = f'/Analyses/{basecall_group}'
    with h5py.File(fast5_path, 'r') as fast5_data:
        template_path = f'{group_path}/{STRAND_SUBGROUPS[T_IDX]}'
        try:
            template = fast5_data[template_path]
            events_ds = template['Events']
            fastq = _decode(template['Fastq'][()])
        except KeyError:
            raise ValueError(f"{fast5_path}: no basecalled template events in {group_path}")

        fastq_lines = fastq.strip().split('\n')
        if len(fastq_lines) < 2:
            raise ValueError(f"{fast5_path}: malformed Fastq record")
        read_name = fastq_lines[0].lstrip('@').split()[0] or os.path.basename(fast5_path)
        read_sequence = fastq_lines[1].strip()

        events = [_read_events(events_ds), []]
        names = events_ds.dtype.names
        basecalled_k = None
        if 'model_state' in names and len(events_ds) > 0:
            basecalled_k = len(_decode(events_ds[0]['model_state']))
        moves = events_ds['move'] if 'move' in names else None

        complement_path = f'{group_path}/{STRAND_SUBGROUPS[C_IDX]}/Events'
        if complement_path in fast5_data:
            events[C_IDX] = _read_events(fast5_data[complement_path])

    k = basecalled_k if basecalled_k is not None else 5
    n_kmers = max(len(read_sequence) - k + 1, 0)
    base_to_event_map = [EventRangeForBase() for _ in range(n_kmers)]
    if moves is not None:
        build_event_map(n_kmers, moves, T_IDX, base_to_event_map)

    return SquiggleRead(read_name, read_sequence, events=events,
                        base_to_event_map=base_to_event_map,
                        basecalled_k=basecalled_k)


def read_fofn(fofn_path: str) -> List[str]:
    """Read a file-of-filenames (one FAST5 path per line, blank lines ignored)."""
    if not os.path.exists(fofn_path):
        raise FileNotFoundError(f"Input file not found: {fofn_path}")
    with open(fofn_path, 'r') as f:
        return [line.strip() for line in f if line.strip()]
