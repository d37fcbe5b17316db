"""
K-mer alphabet for poretrain

Ranks k-mers lexicographically over a fixed symbol set, e.g. for DNA
(A=0, C=1, G=2, T=3):

    AAAAA -> 0, AAAAC -> 1, ..., TTTTT -> 4^5 - 1

The alphabet is passed explicitly to every training function so a smaller
synthetic alphabet can be substituted in tests.
"""

from typing import Dict, Optional


class KmerRankError(ValueError):
    """A k-mer could not be ranked inside the alphabet (corrupt sequence or alphabet)."""


class Alphabet:
    """
    Fixed-size alphabet with lexicographic k-mer ranking.
    """

    def __init__(self, symbols: str = 'ACGT'):
        """
        Args:
            symbols: Alphabet symbols in rank order
        """
        if len(set(symbols)) != len(symbols):
            raise ValueError(f"Duplicate symbols in alphabet: {symbols}")

        self.symbols = symbols
        self.size = len(symbols)
        self._rank: Dict[str, int] = {s: i for i, s in enumerate(symbols)}

    def get_num_strings(self, k: int) -> int:
        """Number of distinct k-mers over this alphabet."""
        return self.size ** k

    def kmer_rank(self, kmer: str, k: Optional[int] = None) -> int:
        """
        Rank of a k-mer in lexicographic order.

        Raises:
            KmerRankError: kmer has the wrong length or a symbol outside the alphabet
        """
        if k is not None and len(kmer) != k:
            raise KmerRankError(f"Expected a {k}-mer, got '{kmer}'")

        rank = 0
        for s in kmer:
            code = self._rank.get(s)
            if code is None:
                raise KmerRankError(f"Symbol '{s}' in k-mer '{kmer}' is not in alphabet {self.symbols}")
            rank = rank * self.size + code
        return rank

    def unrank(self, rank: int, k: int) -> str:
        """Inverse of kmer_rank."""
        if not 0 <= rank < self.get_num_strings(k):
            raise KmerRankError(f"Rank {rank} out of range for k={k}")

        out = []
        for _ in range(k):
            rank, code = divmod(rank, self.size)
            out.append(self.symbols[code])
        return ''.join(reversed(out))

    def __repr__(self) -> str:
        return f"Alphabet('{self.symbols}')"


DNA_ALPHABET = Alphabet('ACGT')
