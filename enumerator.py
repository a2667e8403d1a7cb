"""Bijective enumeration of word variants and of the full geode space."""

from __future__ import annotations

from math import comb, factorial, perm
from typing import Sequence

from models import Geode, Variant
from utils import apply_transform

PUNCTUATION = ("", ",", ".", "\n", "!", "?")
TRANSFORMS = ("identity", "upper", "title")
SPACES = (0, 1, 2, 3, 4)


class VariantEnumerator:
    """
    Map indices in [0, 90) to variants of a word and back.

    Index layout is mixed radix (punctuation, transform, spaces):
    punctuation varies slowest, the leading-space count fastest.
    """

    def count(self) -> int:
        return len(PUNCTUATION) * len(TRANSFORMS) * len(SPACES)

    def unrank(self, word: str, index: int) -> Variant:
        if not 0 <= index < self.count():
            raise IndexError(f"Variant index out of range: {index}")
        rest, spaces_idx = divmod(index, len(SPACES))
        punct_idx, transform_idx = divmod(rest, len(TRANSFORMS))

        punctuation = PUNCTUATION[punct_idx]
        transform = TRANSFORMS[transform_idx]
        spaces = SPACES[spaces_idx]
        text = " " * spaces + apply_transform(transform, word + punctuation)
        return Variant(word=word, punctuation=punctuation, transform=transform, spaces=spaces, text=text)

    def rank(self, variant: Variant) -> int:
        try:
            punct_idx = PUNCTUATION.index(variant.punctuation)
            transform_idx = TRANSFORMS.index(variant.transform)
            spaces_idx = SPACES.index(variant.spaces)
        except ValueError as exc:
            raise ValueError(f"Not an enumerable variant: {variant!r}") from exc
        return (punct_idx * len(TRANSFORMS) + transform_idx) * len(SPACES) + spaces_idx


class SpaceEnumerator:
    """
    Bijection between [0, N) and every geode over a word list.

    Indices are laid out in blocks: by ascending subset size k, then by
    k-combination of word positions in lexicographic order, then by
    permutation of that combination in lexicographic order, then by the
    per-position variant indices (first position most significant).
    Every combination of size k owns k! * V**k consecutive indices.
    """

    def __init__(self, words: Sequence[str], variants: VariantEnumerator | None = None) -> None:
        if not words:
            raise ValueError("At least one word is required to build a geode space")
        self.words: tuple[str, ...] = tuple(words)
        self.variants = variants or VariantEnumerator()

    def __repr__(self) -> str:
        return f"SpaceEnumerator(words={list(self.words)!r})"

    def _size_block(self, size: int) -> int:
        """Number of indices owned by all geodes of the given length."""
        return perm(len(self.words), size) * self.variants.count() ** size

    def count(self) -> int:
        return sum(self._size_block(size) for size in range(1, len(self.words) + 1))

    def unrank(self, index: int) -> Geode:
        if index < 0:
            raise IndexError(f"Geode index out of range: {index}")

        n = len(self.words)
        base = self.variants.count()
        rest = index
        for size in range(1, n + 1):
            block = self._size_block(size)
            if rest < block:
                break
            rest -= block
        else:
            raise IndexError(f"Geode index out of range: {index}")

        variant_span = base**size
        combo_idx, rest = divmod(rest, factorial(size) * variant_span)
        perm_idx, variant_idx = divmod(rest, variant_span)

        positions = self._permutation(self._combination(combo_idx, size), perm_idx)

        digits = []
        for _ in range(size):
            variant_idx, digit = divmod(variant_idx, base)
            digits.append(digit)
        digits.reverse()

        variants = tuple(self.variants.unrank(self.words[pos], digit) for pos, digit in zip(positions, digits))
        return Geode(positions=positions, variants=variants)

    def rank(self, geode: Geode) -> int:
        n = len(self.words)
        size = len(geode.positions)
        if size == 0 or size != len(geode.variants):
            raise ValueError("Geode must pair each position with one variant")
        if len(set(geode.positions)) != size:
            raise ValueError(f"Geode reuses a word position: {geode.positions}")
        if any(not 0 <= pos < n for pos in geode.positions):
            raise ValueError(f"Geode references unknown word positions: {geode.positions}")

        base = self.variants.count()
        offset = sum(self._size_block(smaller) for smaller in range(1, size))

        combo = sorted(geode.positions)
        combo_idx = 0
        start = 0
        for slot, pos in enumerate(combo):
            for skipped in range(start, pos):
                combo_idx += comb(n - skipped - 1, size - slot - 1)
            start = pos + 1

        pool = list(combo)
        perm_idx = 0
        for slot, pos in enumerate(geode.positions):
            digit = pool.index(pos)
            perm_idx += digit * factorial(size - slot - 1)
            pool.pop(digit)

        variant_idx = 0
        for variant in geode.variants:
            variant_idx = variant_idx * base + self.variants.rank(variant)

        variant_span = base**size
        return offset + combo_idx * factorial(size) * variant_span + perm_idx * variant_span + variant_idx

    def _combination(self, index: int, size: int) -> list[int]:
        """Lexicographic unrank of a size-k combination of word positions."""
        n = len(self.words)
        chosen: list[int] = []
        start = 0
        for slot in range(size):
            for candidate in range(start, n):
                below = comb(n - candidate - 1, size - slot - 1)
                if index < below:
                    chosen.append(candidate)
                    start = candidate + 1
                    break
                index -= below
        return chosen

    @staticmethod
    def _permutation(pool: list[int], index: int) -> tuple[int, ...]:
        """Lexicographic unrank of an ordering of `pool` (factorial number system)."""
        remaining = list(pool)
        ordered = []
        for left in range(len(remaining), 0, -1):
            digit, index = divmod(index, factorial(left - 1))
            ordered.append(remaining.pop(digit))
        return tuple(ordered)
