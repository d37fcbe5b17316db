"""
Per-read recalibration of the global pore model parameters.

Fits shift/scale (and optionally drift) by weighted least squares of the
read's raw event levels against the model levels of the aligned k-mers:

    event_i = shift + scale * level_mean_i + drift * time_i

with weights 1 / level_stdv_i^2, then estimates var as the root mean
square standardized residual.
"""

import warnings
from typing import Sequence

import numpy as np
from scipy import linalg

from poretrain.core.alphabet import Alphabet
from poretrain.core.squiggle_read import ModelState, ModelStateError
from poretrain.training.alignment import EventAlignment, checked_kmer_rank


MIN_EVENTS_TO_RESCALE = 200


def recalibrate_model(read, strand_idx: int, alignment: Sequence[EventAlignment],
                      alphabet: Alphabet, scale_drift: bool = False, scale_var: bool = True,
                      min_events: int = MIN_EVENTS_TO_RESCALE) -> bool:
    """
    Recalibrate a read's strand model in place.

    Args:
        read: SquiggleRead whose strand model is in BASELINE_ASSIGNED state
        strand_idx: Strand to recalibrate
        alignment: Event alignment restricted to usable k-mers
        alphabet: Alphabet used to rank k-mers
        scale_drift: Also fit a linear drift term over event time
        scale_var: Estimate var from the residuals (otherwise var is kept)
        min_events: Minimum usable alignment entries needed to fit

    Returns:
        True if the parameters were updated. Entries of untrained k-mers are
        ignored. With too few events (including an empty alignment), or when
        the events cannot constrain the fit, the model is left as it was and
        False is returned.

    Raises:
        ModelStateError: the strand model is not in BASELINE_ASSIGNED state
    """
    state = read.model_state[strand_idx]
    if state != ModelState.BASELINE_ASSIGNED:
        raise ModelStateError(
            f"Read {read.read_name}: recalibration requires a baseline model, "
            f"strand {strand_idx} is {state.value}"
        )

    model = read.pore_model[strand_idx]
    k = model.k

    raw_events, times, level_means, level_stdvs = [], [], [], []
    for ea in alignment:
        if ea.hmm_state != 'M':
            continue
        rank = checked_kmer_rank(alphabet, ea.ref_kmer, k)
        # untrained k-mers carry no level
        if np.isnan(model.level_mean[rank]):
            continue
        raw_events.append(read.get_uncorrected_level(ea.event_idx, strand_idx))
        times.append(read.get_time(ea.event_idx, strand_idx))
        level_means.append(model.level_mean[rank])
        level_stdvs.append(model.level_stdv[rank])

    read.model_state[strand_idx] = ModelState.RECALIBRATED

    if len(raw_events) == 0 or len(raw_events) < min_events:
        return False

    e = np.asarray(raw_events)
    t = np.asarray(times)
    mu = np.asarray(level_means)
    inv_var = 1.0 / np.square(np.asarray(level_stdvs))

    columns = [np.ones_like(mu), mu]
    if scale_drift:
        columns.append(t)
    X = np.column_stack(columns)

    # Normal equations of the weighted problem
    A = X.T @ (X * inv_var[:, np.newaxis])
    b = X.T @ (e * inv_var)

    if np.ptp(mu) == 0 or (scale_drift and np.ptp(t) == 0):
        warnings.warn(
            f"Read {read.read_name}: aligned events do not constrain the fit "
            f"(single level or constant time); keeping baseline parameters",
            RuntimeWarning
        )
        return False

    try:
        with warnings.catch_warnings():
            warnings.simplefilter('error', linalg.LinAlgWarning)
            x = linalg.solve(A, b, assume_a='sym')
    except (linalg.LinAlgError, linalg.LinAlgWarning) as err:
        warnings.warn(
            f"Read {read.read_name}: recalibration system is singular ({err}); "
            f"keeping baseline parameters",
            RuntimeWarning
        )
        return False

    shift = float(x[0])
    scale = float(x[1])
    drift = float(x[2]) if scale_drift else 0.0

    model.shift = shift
    model.scale = scale
    model.drift = drift
    if scale_var:
        residuals = e - shift - scale * mu - drift * t
        model.var = float(np.sqrt(np.mean(residuals * residuals * inv_var)))

    model.bake_gaussian_parameters()
    return True
