#!/usr/bin/env python3
"""
poretrain train
Train a new pore model using the basecalled reads listed in input.fofn.

Outputs (in --outdir):
- baseline-model.json: model estimated from the baseline read
- baseline-model.tsv: the same model as a per k-mer table
- trainmodel.tsv: per-event training observations (read_idx, kmer, level_mean, duration)
- recalibration.tsv: per-read shift/scale/drift/var after recalibration
- model_config.json: settings used for the run
"""

import argparse
import json
import os
import sys

from poretrain.cli.common import (
    add_kmer_args, add_strand_args, add_recalibration_args,
    add_output_args, add_verbose_args, add_version_args,
)
from poretrain.core.alphabet import DNA_ALPHABET, KmerRankError
from poretrain.core.model_io import save_model, write_model_tsv
from poretrain.core.squiggle_read import STRAND_NAMES
from poretrain.training.pipeline import TrainingOptions, train_pore_model, load_reads
from poretrain.training.training_data import write_training_tsv


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='poretrain-train',
        description='Train a new pore model using the basecalled reads in input.fofn',
    )
    parser.add_argument('fofn', metavar='input.fofn',
                        help='File listing one FAST5 path per line')

    add_kmer_args(parser)
    add_strand_args(parser)
    add_recalibration_args(parser)
    add_output_args(parser)
    parser.add_argument('--basecall-group', default='Basecall_1D_000',
                        help='FAST5 group under /Analyses holding the basecall (default: Basecall_1D_000)')
    parser.add_argument('--header-only', action='store_true',
                        help='Write only the header of trainmodel.tsv')
    add_verbose_args(parser)
    add_version_args(parser)
    return parser


def parse_args(argv=None):
    return build_parser().parse_args(argv)


def options_from_args(args) -> TrainingOptions:
    return TrainingOptions(
        k=args.kmer_size,
        strand_idx=STRAND_NAMES.index(args.strand),
        scale_drift=args.scale_drift,
        min_recalibration_events=args.min_recalibration_events,
        verbose=args.verbose,
    )


def main(argv=None):
    args = parse_args(argv)

    if args.kmer_size is not None and args.kmer_size < 1:
        print(f"Error: --kmer-size must be positive, got {args.kmer_size}", file=sys.stderr)
        sys.exit(1)

    options = options_from_args(args)

    try:
        reads = load_reads(args.fofn, basecall_group=args.basecall_group)
        if not reads:
            print(f"Error: no reads listed in {args.fofn}", file=sys.stderr)
            sys.exit(1)
        result = train_pore_model(reads, options, alphabet=DNA_ALPHABET)
    except KmerRankError as e:
        print(f"Error: k-mer ranking failed, aborting: {e}", file=sys.stderr)
        sys.exit(1)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    for summary in result.recalibrations:
        print(summary.format())

    os.makedirs(args.outdir, exist_ok=True)

    baseline_name = reads[result.baseline_index].read_name
    print(f"\nBaseline read: {result.baseline_index} ({baseline_name}, "
          f"{result.read_totals[result.baseline_index]} events)")
    print(f"Trained k-mers: {int(result.use_kmer.sum())}/{len(result.use_kmer)}")
    print(f"\nSaving to {args.outdir}")

    write_training_tsv(os.path.join(args.outdir, 'trainmodel.tsv'),
                       result.training_frames, include_rows=not args.header_only)
    print("  Saved: trainmodel.tsv")

    save_model(result.model, os.path.join(args.outdir, 'baseline-model.json'),
               metadata={'baseline_read': baseline_name, 'strand': args.strand})
    print("  Saved: baseline-model.json")

    write_model_tsv(result.model, os.path.join(args.outdir, 'baseline-model.tsv'), DNA_ALPHABET)
    print("  Saved: baseline-model.tsv")

    result.recalibration_table().to_csv(os.path.join(args.outdir, 'recalibration.tsv'),
                                        sep='\t', index=False)
    print("  Saved: recalibration.tsv")

    # Save config (JSON - human readable)
    config = options.to_dict()
    config.update({
        'k': result.k,
        'strand': args.strand,
        'input': args.fofn,
        'basecall_group': args.basecall_group,
        'baseline_index': result.baseline_index,
    })
    with open(os.path.join(args.outdir, 'model_config.json'), 'w') as f:
        json.dump(config, f, indent=2)
    print("  Saved: model_config.json")

    print("Done!")


if __name__ == '__main__':
    main()
