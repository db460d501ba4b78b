import pytest

from cipher_implementation import encode
from dict_tree import DictTree


@pytest.fixture
def tree():
    return DictTree([encode(w) for w in ["car", "cart", "cat", "dog"]])


def test_exists_follows_prefixes(tree):
    assert tree.exists(encode("ca"))
    assert tree.exists(encode("cart"))
    assert tree.exists([])
    assert not tree.exists(encode("cab"))
    assert not tree.exists(encode("carts"))


def test_contains_needs_whole_word(tree):
    assert tree.contains(encode("car"))
    assert tree.contains(encode("cart"))
    assert encode("dog") in tree
    assert not tree.contains(encode("ca"))
    assert not tree.contains(encode("do"))


def test_size_counts_distinct_words(tree):
    assert len(tree) == 4
    assert not tree.add(encode("cat"))
    assert tree.add(encode("ca"))
    assert len(tree) == 5


def test_rejects_codes_outside_alphabet():
    with pytest.raises(ValueError):
        DictTree([[1, 26]])
