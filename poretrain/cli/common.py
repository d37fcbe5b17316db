"""Shared argparse argument factories for poretrain CLI tools.

Each function adds a group of related arguments to an ArgumentParser.
Default values can be overridden per-script where needed.
"""

import argparse

from poretrain.core.squiggle_read import STRAND_NAMES


def add_kmer_args(parser: argparse.ArgumentParser, default=None) -> None:
    """Add -k/--kmer-size argument (None = infer from the reads)."""
    parser.add_argument(
        '--kmer-size', '-k', type=int, default=default,
        help="K-mer size of the basecaller "
             f"(default: {default if default is not None else 'inferred from reads'})"
    )


def add_strand_args(parser: argparse.ArgumentParser, default: str = 'template') -> None:
    """Add --strand argument."""
    parser.add_argument(
        '--strand',
        choices=list(STRAND_NAMES),
        default=default,
        help=f"Strand to train on (default: {default})"
    )


def add_recalibration_args(parser: argparse.ArgumentParser, min_events: int = 200) -> None:
    """Add recalibration arguments (--scale-drift, --min-recalibration-events)."""
    parser.add_argument(
        '--scale-drift', action='store_true',
        help="Fit a linear drift term when recalibrating each read"
    )
    parser.add_argument(
        '--min-recalibration-events', type=int, default=min_events,
        help=f"Minimum aligned events needed to recalibrate a read (default: {min_events})"
    )


def add_output_args(parser: argparse.ArgumentParser,
                    required: bool = False,
                    default: str = '.',
                    help_text: str = "Output directory") -> None:
    """Add -o/--outdir argument."""
    parser.add_argument(
        '-o', '--outdir', required=required, default=None if required else default,
        help=f"{help_text} (default: {default})" if not required else help_text
    )


def add_verbose_args(parser: argparse.ArgumentParser) -> None:
    """Add -v/--verbose flag."""
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help="Verbose output"
    )


def add_version_args(parser: argparse.ArgumentParser) -> None:
    """Add --version flag."""
    from poretrain import __version__
    parser.add_argument(
        '--version', action='version',
        version=f'%(prog)s {__version__}'
    )
