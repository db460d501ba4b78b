import json

import pytest

from cipher_implementation import (
    all_or_nothing,
    decode,
    decode_char,
    decode_str,
    decrypt_message,
    decrypt_str,
    encode,
    encode_char,
    encode_str,
    encrypt_message,
    encrypt_str,
    fill_msg_dict,
    strip_message,
    stride,
)


def test_encode_char():
    assert encode_char("a") == 0
    assert encode_char("Z") == 25
    assert encode_char("7") is None
    assert encode_char(" ") is None


def test_encode_str_and_all_or_nothing():
    encoded = encode_str("ab c")
    assert encoded == [0, 1, None, 2]
    assert all_or_nothing(encoded) is None
    assert all_or_nothing([3, 4]) == [3, 4]


def test_strip_and_encode():
    assert strip_message("Hello, World 42!") == "helloworld"
    assert encode("Abc-d") == [0, 1, 2, 3]


def test_decode():
    assert decode_char(0) == "a"
    assert decode_char(26) is None
    assert decode_str([7, 8]) == "hi"
    assert decode_str([7, 30]) is None
    with pytest.raises(ValueError):
        decode([99])


def test_known_vigenere_vector():
    assert encrypt_message("ATTACK AT DAWN", "LEMON") == "LXFOPVEFRNHR"
    assert decrypt_message("LXFOPVEFRNHR", "lemon") == "ATTACKATDAWN"


def test_key_repeats_over_text():
    assert encrypt_message("attack", "key") == "KXRKGI"
    assert decrypt_str(encrypt_str(encode("attack"), [10, 4, 24]), [10, 4, 24]) == (
        encode("attack")
    )


def test_empty_key_rejected():
    with pytest.raises(ValueError):
        encrypt_str([1, 2], [])
    with pytest.raises(ValueError):
        decrypt_str([1, 2], [])


def test_stride():
    encoded = list(range(10))
    assert stride(encoded, 3, 0) == [0, 3, 6, 9]
    assert stride(encoded, 3, 2) == [2, 5, 8]
    with pytest.raises(ValueError):
        stride(encoded, 0, 0)


def test_fill_msg_dict(tmp_path):
    path = tmp_path / "messages.json"
    path.write_text(
        json.dumps({"1": {"plaintext": "attack at dawn", "key": "LEMON"}}),
        encoding="utf-8",
    )

    entry = fill_msg_dict(1, messages_json_path=str(path))

    assert entry["ciphertext"] == "LXFOPVEFRNHR"
    stored = json.loads(path.read_text(encoding="utf-8"))
    assert stored["1"]["ciphertext"] == "LXFOPVEFRNHR"


def test_fill_msg_dict_keeps_existing_without_overwrite(tmp_path):
    path = tmp_path / "messages.json"
    path.write_text(
        json.dumps({"1": {"plaintext": "abc", "key": "B", "ciphertext": "KEEP"}}),
        encoding="utf-8",
    )

    entry = fill_msg_dict("1", messages_json_path=str(path), overwrite=False)

    assert entry["ciphertext"] == "KEEP"


def test_fill_msg_dict_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        fill_msg_dict(1, messages_json_path=str(tmp_path / "missing.json"))

    path = tmp_path / "messages.json"
    path.write_text(json.dumps({"1": {"plaintext": "abc"}}), encoding="utf-8")
    with pytest.raises(KeyError):
        fill_msg_dict(2, messages_json_path=str(path))
    with pytest.raises(ValueError):
        fill_msg_dict(1, messages_json_path=str(path))
