import json
import os

import pytest

import cipher_breaker_helpers as helpers
from cipher_breaker_helpers import (
    check_attempt,
    choose_key,
    dictionary_source,
    encode_dictionary,
    filter_dictionary,
    find_best_offsets,
    gen_dict_freqs,
    gen_freqs,
    get_dict_freqs,
    get_dictionary,
    get_first_word_dict,
    rank_key_letters,
    read_dict_freqs,
    read_first_word_dict,
    set_config_helpers,
    write_dict_freqs,
)
from cipher_implementation import encode, encrypt_str


@pytest.fixture(autouse=True)
def reset_config():
    yield
    set_config_helpers({})


@pytest.fixture
def dictionary_file(tmp_path):
    path = tmp_path / "words.txt"
    path.write_text("cat dog\nbird fish\nant don't 42\n", encoding="utf-8")
    return str(path)


def test_get_dictionary(dictionary_file):
    assert get_dictionary(dictionary_file) == [
        "cat",
        "dog",
        "bird",
        "fish",
        "ant",
        "don't",
        "42",
    ]
    with pytest.raises(FileNotFoundError):
        get_dictionary(dictionary_file + ".missing")


def test_encode_and_filter_dictionary(dictionary_file):
    words = get_dictionary(dictionary_file)
    assert filter_dictionary(words, 4) == ["bird", "fish"]

    encoded = encode_dictionary(words)
    assert encode("dont") in encoded
    assert len(encoded) == 6


def test_frequencies():
    freqs = gen_dict_freqs([[0, 0], [1, 0]])
    assert freqs[0] == pytest.approx(0.75)
    assert freqs[1] == pytest.approx(0.25)
    assert sum(freqs) == pytest.approx(1.0)

    assert gen_freqs([]) == [0.0] * 26
    assert gen_freqs([3, 3])[3] == pytest.approx(1.0)


def test_find_best_offsets_ranks_shift_first():
    reference = [0.0] * 26
    reference[4] = 1.0
    observed = [0.0] * 26
    observed[7] = 1.0

    ranking = find_best_offsets(reference, observed)

    assert ranking[0] == 3
    assert ranking[1:4] == [0, 1, 2]
    assert sorted(ranking) == list(range(26))


def test_rank_key_letters_recovers_key_per_position():
    dict_freqs = gen_dict_freqs([encode("eeee")])
    key = [1, 2, 3]
    ciphertext = encrypt_str(encode("e" * 12), key)

    best_keys = rank_key_letters(ciphertext, 3, dict_freqs)

    assert len(best_keys) == 3
    assert [ranks[0] for ranks in best_keys] == key
    assert all(len(ranks) == 26 for ranks in best_keys)


def test_choose_key():
    best_keys = [[5, 6, 7], [8, 9, 10]]
    assert choose_key(best_keys, [0, 0]) == [5, 8]
    assert choose_key(best_keys, [2, 1]) == [7, 9]


def test_check_attempt():
    words = [[0, 1], [2, 3]]
    assert check_attempt([2, 3, 9], words)
    assert check_attempt([0, 1], words)
    assert not check_attempt([2, 4, 0], words)
    assert not check_attempt([2], words)
    assert not check_attempt([0, 1], [])


def test_first_word_dict_cache(tmp_path, dictionary_file):
    cache_dir = str(tmp_path / "cache")
    set_config_helpers(
        {"use_cache": True, "cache_dir": cache_dir, "dictionary_path": dictionary_file}
    )

    words = get_first_word_dict(3)

    assert sorted(words) == sorted([encode("cat"), encode("dog"), encode("ant")])
    assert os.path.isfile(os.path.join(cache_dir, "dict3.json"))
    assert os.path.isfile(os.path.join(cache_dir, "dict4.json"))
    assert read_first_word_dict(4, cache_dir) == [
        encode("bird"),
        encode("fish"),
        encode("dont"),
    ]

    # Served from the cache while the dictionary is unchanged
    os.remove(os.path.join(cache_dir, "dict4.json"))
    assert sorted(get_first_word_dict(3)) == sorted(words)
    assert not os.path.isfile(os.path.join(cache_dir, "dict4.json"))


def test_first_word_dict_cache_follows_dictionary(tmp_path):
    cache_dir = str(tmp_path / "cache")
    set_config_helpers({"use_cache": True, "cache_dir": cache_dir})
    first = tmp_path / "first.txt"
    first.write_text("cat dog", encoding="utf-8")
    second = tmp_path / "second.txt"
    second.write_text("owl bee", encoding="utf-8")

    assert get_first_word_dict(3, dictionary_path=str(first)) == [
        encode("cat"),
        encode("dog"),
    ]
    assert get_first_word_dict(3, dictionary_path=str(second)) == [
        encode("owl"),
        encode("bee"),
    ]

    # Editing the same file invalidates its cache too
    first.write_text("ant bat emu", encoding="utf-8")
    assert get_first_word_dict(3, dictionary_path=str(first)) == [
        encode("ant"),
        encode("bat"),
        encode("emu"),
    ]


def test_dict_freqs_cache_follows_dictionary(tmp_path):
    cache_dir = str(tmp_path / "cache")
    set_config_helpers({"use_cache": True, "cache_dir": cache_dir})
    first = tmp_path / "first.txt"
    first.write_text("aaaa", encoding="utf-8")
    second = tmp_path / "second.txt"
    second.write_text("bbbb", encoding="utf-8")

    assert get_dict_freqs(dictionary_path=str(first))[0] == pytest.approx(1.0)
    freqs = get_dict_freqs(dictionary_path=str(second))
    assert freqs[0] == pytest.approx(0.0)
    assert freqs[1] == pytest.approx(1.0)


def test_first_word_dict_without_cache(tmp_path, dictionary_file):
    cache_dir = str(tmp_path / "cache")
    set_config_helpers({"use_cache": False, "cache_dir": cache_dir})

    words = get_first_word_dict(4, dictionary_path=dictionary_file)

    assert words == [encode("bird"), encode("fish"), encode("dont")]
    assert not os.path.exists(cache_dir)


def test_dict_freqs_cache(tmp_path, dictionary_file):
    cache_dir = str(tmp_path / "cache")
    set_config_helpers({"use_cache": True, "cache_dir": cache_dir})

    freqs = get_dict_freqs(dictionary_path=dictionary_file)

    assert read_dict_freqs(cache_dir) == pytest.approx(freqs)
    assert sum(freqs) == pytest.approx(1.0)


def test_malformed_frequency_cache_is_rebuilt(tmp_path, dictionary_file):
    cache_dir = str(tmp_path / "cache")
    write_dict_freqs([1.0, 2.0], cache_dir)
    with pytest.raises(ValueError):
        read_dict_freqs(cache_dir)

    set_config_helpers({"use_cache": True, "cache_dir": cache_dir})
    freqs = get_dict_freqs(dictionary_path=dictionary_file)

    assert len(freqs) == 26
    assert read_dict_freqs(cache_dir) == pytest.approx(freqs)


@pytest.mark.parametrize(
    "contents",
    [
        ["cat"],
        [[2, 0]],
        [[2, 0, 26]],
        [[2, 0, True]],
        {"cat": [2, 0, 19]},
    ],
)
def test_malformed_first_word_cache_is_rebuilt(tmp_path, dictionary_file, contents):
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    source = dictionary_source(dictionary_file)
    (cache_dir / "dict3.json").write_text(
        json.dumps({"source": source, "data": contents}), encoding="utf-8"
    )
    with pytest.raises(ValueError):
        read_first_word_dict(3, str(cache_dir))

    set_config_helpers({"use_cache": True, "cache_dir": str(cache_dir)})
    words = get_first_word_dict(3, dictionary_path=dictionary_file)

    assert sorted(words) == sorted([encode("cat"), encode("dog"), encode("ant")])
    assert read_first_word_dict(3, str(cache_dir), source) == words


def test_cache_without_source_header_is_rebuilt(tmp_path, dictionary_file):
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    (cache_dir / "dict3.json").write_text(json.dumps([[2, 0, 19]]), encoding="utf-8")

    set_config_helpers({"use_cache": True, "cache_dir": str(cache_dir)})

    assert len(get_first_word_dict(3, dictionary_path=dictionary_file)) == 3


def test_default_cache_dir_follows_config(tmp_path):
    set_config_helpers({"cache_dir": str(tmp_path)})
    assert helpers._cache_dir() == str(tmp_path)
