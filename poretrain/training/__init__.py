"""Model training: alignment, training data, estimation, recalibration."""

from poretrain.training.alignment import EventAlignment, generate_alignment_to_basecalls
from poretrain.training.training_data import (
    StateTrainingData,
    alignment_to_training_data,
    count_training_events,
    select_baseline_read,
    training_rows,
    write_training_tsv,
)
from poretrain.training.estimator import estimate_initial_model, median_level
from poretrain.training.recalibration import recalibrate_model
from poretrain.training.pipeline import (
    TrainingOptions,
    TrainingResult,
    RecalibrationSummary,
    train_pore_model,
    infer_kmer_size,
    load_reads,
)

__all__ = [
    'EventAlignment',
    'generate_alignment_to_basecalls',
    'StateTrainingData',
    'alignment_to_training_data',
    'count_training_events',
    'select_baseline_read',
    'training_rows',
    'write_training_tsv',
    'estimate_initial_model',
    'median_level',
    'recalibrate_model',
    'TrainingOptions',
    'TrainingResult',
    'RecalibrationSummary',
    'train_pore_model',
    'infer_kmer_size',
    'load_reads',
]
