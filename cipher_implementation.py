"""
Repeating-key (Vigenere) cipher implementation over the letters a-z
"""

import json
import os
from typing import List, Optional

ALPHABET_SIZE = 26
DEBUG_OUTPUT = False

Encoded = List[int]


def debug(*args, **kwargs):
    if DEBUG_OUTPUT:
        print(*args, **kwargs)


def encode_char(character: str) -> Optional[int]:
    """Encode a-z / A-Z as 0..25; anything else is None."""
    lowered = character.lower()
    if len(lowered) == 1 and "a" <= lowered <= "z":
        return ord(lowered) - ord("a")
    return None


def encode_str(message: str) -> List[Optional[int]]:
    """Encode every character, leaving None where it is not a letter."""
    return [encode_char(c) for c in message]


def all_or_nothing(encoded: List[Optional[int]]) -> Optional[Encoded]:
    """Return None if any element is None, otherwise the plain list."""
    if any(e is None for e in encoded):
        return None
    return list(encoded)


def strip_message(message: str) -> str:
    """Lowercase the message and drop everything outside a-z."""
    return "".join(c for c in message.lower() if "a" <= c <= "z")


def encode(message: str) -> Encoded:
    """Strip and encode a message; fails if anything cannot be encoded."""
    encoded = all_or_nothing(encode_str(strip_message(message)))
    if encoded is None:
        raise ValueError(f"Failed to encode message: {message!r}")
    return encoded


def decode_char(code: int) -> Optional[str]:
    """Decode 0..25 as a-z; None when out of range."""
    if 0 <= code < ALPHABET_SIZE:
        return chr(ord("a") + code)
    return None


def decode_str(codes: Encoded) -> Optional[str]:
    """Decode to a lowercase string, or None when any code is out of range."""
    chars = [decode_char(c) for c in codes]
    if any(c is None for c in chars):
        return None
    return "".join(chars)


def decode(codes: Encoded) -> str:
    decoded = decode_str(codes)
    if decoded is None:
        raise ValueError(f"Failed to decode codes: {codes}")
    return decoded


def encrypt_char(code: int, key: int) -> int:
    return (code + key) % ALPHABET_SIZE


def decrypt_char(code: int, key: int) -> int:
    return (code + ALPHABET_SIZE - key) % ALPHABET_SIZE


def encrypt_str(encoded: Encoded, key: Encoded) -> Encoded:
    """Encrypt with the key repeated over the text."""
    if not key:
        raise ValueError("key must not be empty")
    return [encrypt_char(c, key[i % len(key)]) for i, c in enumerate(encoded)]


def decrypt_str(encoded: Encoded, key: Encoded) -> Encoded:
    """Decrypt with the key repeated over the text."""
    if not key:
        raise ValueError("key must not be empty")
    return [decrypt_char(c, key[i % len(key)]) for i, c in enumerate(encoded)]


def encrypt_message(plaintext: str, key: str) -> str:
    """Encrypt plaintext letters with a letter key, returned in upper case."""
    ciphertext = decode(encrypt_str(encode(plaintext), encode(key))).upper()
    debug(f"encrypt_message: key='{key}' -> {ciphertext}")
    return ciphertext


def decrypt_message(ciphertext: str, key: str) -> str:
    """Decrypt ciphertext letters with a letter key, returned in upper case."""
    plaintext = decode(decrypt_str(encode(ciphertext), encode(key))).upper()
    debug(f"decrypt_message: key='{key}' -> {plaintext}")
    return plaintext


def stride(encoded: Encoded, step: int, offset: int) -> Encoded:
    """Return every step-th symbol starting at offset (one key position)."""
    if step < 1:
        raise ValueError(f"stride must be >= 1, got {step}")
    return encoded[offset::step]


def fill_msg_dict(entry_id, messages_json_path=None, overwrite=True):
    """
    Fill the 'ciphertext' field for the given entry_id in messages.json.
    Uses the entry's plaintext and key to encrypt the message.
    """
    if messages_json_path is None:
        messages_json_path = os.path.join(
            os.path.dirname(__file__), "auxiliary", "messages.json"
        )

    if not os.path.isfile(messages_json_path):
        raise FileNotFoundError(f"messages.json not found at: {messages_json_path}")

    with open(messages_json_path, "r", encoding="utf-8") as fh:
        data = json.load(fh)

    key_str = str(entry_id)
    if key_str not in data:
        raise KeyError(f"Entry '{key_str}' not found in messages.json")

    entry = data[key_str]
    plaintext = entry.get("plaintext")
    key = entry.get("key")

    if not key:
        raise ValueError(f"Entry '{key_str}' has no 'key' field")

    if not isinstance(plaintext, str) or not strip_message(plaintext):
        raise ValueError(
            f"Entry '{key_str}' has invalid 'plaintext' field (expected letters)"
        )

    if entry.get("ciphertext"):
        if not overwrite:
            print(
                f"Entry '{key_str}' already has a ciphertext and overwrite=False; skipping."
            )
            return entry
        print(f"Overwriting existing ciphertext for entry '{key_str}'.")

    ciphertext = encrypt_message(plaintext, key)
    print(f"Processing messages.json entry '{key_str}' with key '{key}'")
    print(f"    Plaintext:  {plaintext}")
    print(f"    Ciphertext: {ciphertext}\n")

    entry["ciphertext"] = ciphertext
    data[key_str] = entry

    with open(messages_json_path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)

    print(f"Successfully wrote ciphertext for entry '{key_str}' to {messages_json_path}")
    return entry


if __name__ == "__main__":
    fill_msg_dict(1)
    fill_msg_dict(2)
    fill_msg_dict(3)
