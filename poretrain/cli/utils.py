#!/usr/bin/env python3
"""
poretrain utilities: inspect, export.

Usage:
    poretrain-utils inspect baseline-model.json
    poretrain-utils inspect baseline-model.json --full
    poretrain-utils export baseline-model.json baseline-model.tsv
"""

import argparse
import os
import sys

import numpy as np

from poretrain.core.alphabet import DNA_ALPHABET
from poretrain.core.model_io import load_model_with_metadata, model_to_dataframe, write_model_tsv


def cmd_inspect(args):
    """Inspect a model file: print metadata, global parameters, level summary."""
    filepath = args.model

    if not os.path.exists(filepath):
        print(f"Error: File not found: {filepath}", file=sys.stderr)
        sys.exit(1)

    model, metadata = load_model_with_metadata(filepath)
    trained = model.trained_mask

    print(f"Model: {filepath}")
    print(f"  K-mer size: {model.k} ({model.n_kmers:,} k-mers)")
    print(f"  Trained k-mers: {int(trained.sum()):,}")
    for key, value in metadata.items():
        print(f"  {key}: {value}")
    print()

    print("Global parameters:")
    for name, value in model.global_parameters().items():
        print(f"  {name:>8s}: {value:.6f}")
    print()

    if trained.any():
        levels = model.level_mean[trained]
        print("Levels of trained k-mers:")
        print(f"    min={levels.min():.3f}  max={levels.max():.3f}  "
              f"mean={levels.mean():.3f}  median={np.median(levels):.3f}")

    if args.full:
        print()
        print("Full level table:")
        df = model_to_dataframe(model, DNA_ALPHABET)
        for row in df[df['trained']].itertuples(index=False):
            print(f"    {row.kmer}: {row.level_mean:.4f} +/- {row.level_stdv:.4f}")


def cmd_export(args):
    """Export a JSON model as a per k-mer TSV table."""
    model, _ = load_model_with_metadata(args.model)
    write_model_tsv(model, args.output, DNA_ALPHABET)
    print(f"Saved: {args.output}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='poretrain-utils',
        description='poretrain utilities: model inspection and export',
    )
    subparsers = parser.add_subparsers(dest='command')

    p_inspect = subparsers.add_parser('inspect', help='Print model parameters and level summary')
    p_inspect.add_argument('model', help='Model file (.json)')
    p_inspect.add_argument('--full', action='store_true', help='Print every trained k-mer')

    p_export = subparsers.add_parser('export', help='Write model as a per k-mer TSV table')
    p_export.add_argument('model', help='Model file (.json)')
    p_export.add_argument('output', help='Output TSV file')

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == 'inspect':
        cmd_inspect(args)
    elif args.command == 'export':
        cmd_export(args)


if __name__ == '__main__':
    main()
