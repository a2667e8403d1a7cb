from itertools import combinations, permutations, product
from math import factorial

import pytest

from enumerator import PUNCTUATION, SPACES, TRANSFORMS, SpaceEnumerator, VariantEnumerator
from models import Geode


class TwoVariants(VariantEnumerator):
    """Only the first two variants of each word, to keep whole-space checks small."""

    def count(self) -> int:
        return 2


def closed_form_count(word_count: int, per_word: int = 90) -> int:
    total = 0
    for size in range(1, word_count + 1):
        for _subset in combinations(range(word_count), size):
            total += factorial(size) * per_word**size
    return total


def test_variant_rank_inverts_unrank_for_every_index() -> None:
    enumerator = VariantEnumerator()
    for word in ["ok", "Hello", "dOn't", "ünïcode"]:
        for index in range(enumerator.count()):
            assert enumerator.rank(enumerator.unrank(word, index)) == index


def test_variant_reaches_every_triple_once() -> None:
    enumerator = VariantEnumerator()
    triples = {
        (v.punctuation, v.transform, v.spaces)
        for v in (enumerator.unrank("ok", i) for i in range(enumerator.count()))
    }
    assert enumerator.count() == 90
    assert triples == set(product(PUNCTUATION, TRANSFORMS, SPACES))


def test_variant_text_layout() -> None:
    enumerator = VariantEnumerator()
    assert enumerator.unrank("ok", 0).text == "ok"
    assert enumerator.unrank("ok", 22).text == "  OK,"
    assert enumerator.unrank("hELLO", 10).text == "Hello"
    assert enumerator.unrank("ok", 56).text == " Ok\n"
    assert enumerator.unrank("ok", 89).text == "    Ok?"


def test_variant_index_out_of_range() -> None:
    enumerator = VariantEnumerator()
    with pytest.raises(IndexError):
        enumerator.unrank("ok", 90)
    with pytest.raises(IndexError):
        enumerator.unrank("ok", -1)


def test_space_count_matches_closed_form() -> None:
    assert SpaceEnumerator(["ok"]).count() == 90
    assert SpaceEnumerator(["ok", "go"]).count() == 16380
    for word_count in range(1, 6):
        words = [f"w{i}" for i in range(word_count)]
        assert SpaceEnumerator(words).count() == closed_form_count(word_count)


def test_space_requires_words() -> None:
    with pytest.raises(ValueError):
        SpaceEnumerator([])


def test_two_word_space_is_total_and_unique() -> None:
    space = SpaceEnumerator(["ok", "go"])
    geodes = [space.unrank(i) for i in range(space.count())]

    for geode in geodes:
        assert 1 <= len(geode.positions) <= 2
        assert len(set(geode.positions)) == len(geode.positions)
        assert [v.word for v in geode.variants] == [space.words[p] for p in geode.positions]
    assert len(set(geodes)) == space.count()


def test_unrank_order_follows_combinations_then_permutations() -> None:
    space = SpaceEnumerator(["a", "b", "c"], variants=TwoVariants())
    expected = []
    for size in range(1, 4):
        for combo in combinations(range(3), size):
            for ordering in permutations(combo):
                for digits in product(range(2), repeat=size):
                    expected.append((ordering, digits))

    variants = VariantEnumerator()
    actual = []
    for index in range(space.count()):
        geode = space.unrank(index)
        actual.append((geode.positions, tuple(variants.rank(v) for v in geode.variants)))

    assert space.count() == len(expected) == 78
    assert actual == expected


def test_rank_inverts_unrank_across_large_space() -> None:
    space = SpaceEnumerator(["amber", "basalt", "chert", "dolomite"])
    total = space.count()
    for index in list(range(0, total, total // 997)) + [total - 1]:
        assert space.rank(space.unrank(index)) == index


def test_duplicate_words_are_enumerated_independently() -> None:
    space = SpaceEnumerator(["ok", "ok"])
    assert space.count() == 16380
    first, second = space.unrank(0), space.unrank(90)
    assert first.text == second.text == "ok"
    assert first != second
    assert first.positions == (0,)
    assert second.positions == (1,)


def test_index_math_beyond_machine_words() -> None:
    words = [f"word{i}" for i in range(30)]
    space = SpaceEnumerator(words)
    total = space.count()
    assert total > 2**64
    assert total == sum(factorial(30) // factorial(30 - k) * 90**k for k in range(1, 31))

    last = space.unrank(total - 1)
    assert len(last.positions) == 30
    assert last.positions == tuple(range(29, -1, -1))
    assert space.rank(last) == total - 1

    middle = total // 3 + 12345
    assert space.rank(space.unrank(middle)) == middle

    with pytest.raises(IndexError):
        space.unrank(total)
    with pytest.raises(IndexError):
        space.unrank(-1)


def test_rank_rejects_malformed_geodes() -> None:
    space = SpaceEnumerator(["ok", "go"])
    variant = space.unrank(0).variants[0]
    with pytest.raises(ValueError):
        space.rank(Geode(positions=(0, 0), variants=(variant, variant)))
    with pytest.raises(ValueError):
        space.rank(Geode(positions=(5,), variants=(variant,)))
    with pytest.raises(ValueError):
        space.rank(Geode(positions=(), variants=()))
