from typing import List, Dict, Optional, Iterable
import json
import os
import time

from cipher_implementation import encrypt_message, strip_message
from cipher_breaker_helpers import (
    set_config_helpers,
    get_dict_freqs,
    get_first_word_dict,
)
from cipher_breaker_utils import (
    set_config,
    clear_keyboard_interrupt,
    was_keyboard_interrupted,
)

from cipher_breaker_utils import VigenereBreaker


CONFIG = {
    # GENERAL SETTINGS
    "debug_output": False,  # if True, print detailed debug info during search
    "intermediate_output": True,  # if True, print intermediate results during search
    "messages_json_path": None,  # defaults to auxiliary/messages.json next to this module
    "overwrite_json_entries": False,  # if True, overwrite existing key/plaintext in messages.json (results are always overwritten)
    "key_search_only": False,  # if True, do not write results back to messages.json
    #
    # DICTIONARY SETTINGS
    "dictionary_path": None,  # defaults to auxiliary/english_dictionary.txt
    "cache_dir": None,  # defaults to auxiliary/cache (frequencies.json, dict<n>.json)
    "use_cache": True,  # if True, read/write the JSON caches instead of re-reading the dictionary
    "use_dict_tree": True,  # if True, verify attempts with a DictTree, otherwise scan the word list
    #
    # KEY SEARCH SETTINGS
    "alphabet_size": 26,  # how many ranked letters per key position are tried (<= 26)
    "key_lengths": [3, 4, 5],  # key lengths to try when an entry has no 'lengths'
    "first_word_length": None,  # length of the first plaintext word when an entry has none
    "stop_on_first_hit": True,  # if True, stop after the first key length that yields a key
    "key_search_workers": 1,  # >1 splits the attempt order between worker processes
    "attempts_per_chunk": 200000,  # attempts per worker task
    "status_every": 100000,  # print a status line every N sequential attempts (0 = never)
}

set_config(CONFIG)
set_config_helpers(CONFIG)


def debug(*args, **kwargs):
    if CONFIG.get("debug_output", False):
        print(*args, **kwargs)


def process_entry_logic(
    entry_id: str,
    ciphertext: str,
    key_lengths: List[int],
    first_word_length: int,
    cfg: Dict,
    plaintext: Optional[str] = None,
    key: Optional[str] = None,
) -> Dict:
    """Run the frequency ranking + attempt-order search for a single entry."""
    entry: Dict = {"ciphertext": ciphertext}

    if CONFIG.get("intermediate_output", True):
        print(
            f"Breaking entry '{entry_id}'"
            + (f" with key hint '{key}' (length={len(key)})" if key else "")
            + f" first_word_length={first_word_length} Trying lengths: {key_lengths}\n"
        )

    set_config_helpers(cfg)
    first_word_dict = get_first_word_dict(
        first_word_length, cfg.get("dictionary_path"), cfg.get("cache_dir")
    )
    if not first_word_dict:
        raise ValueError(
            f"Dictionary has no words of length {first_word_length} for entry '{entry_id}'"
        )
    dict_freqs = get_dict_freqs(cfg.get("dictionary_path"), cfg.get("cache_dir"))
    debug(f"Loaded {len(first_word_dict)} first-word candidates")

    breaker = VigenereBreaker(config=cfg)
    clear_keyboard_interrupt()

    start = time.perf_counter()
    try:
        results = breaker.break_vigenere(
            ciphertext, key_lengths, first_word_dict, dict_freqs
        )
    except KeyboardInterrupt:
        if CONFIG.get("intermediate_output", True):
            print("\n[KEYBOARD-INTERRUPT] Received during break_vigenere...")
        results = {}
    elapsed_ms = (time.perf_counter() - start) * 1000.0

    if was_keyboard_interrupted():
        clear_keyboard_interrupt()
        entry["_keyboard_interrupt"] = True

    entry["results"] = [
        {
            "length": length,
            "key": r["key"],
            "plaintext": r["plaintext"],
            "attempts": r["attempts"],
            "num_changes": r["num_changes"],
        }
        for length, r in sorted(results.items())
        if r is not None
    ]

    if CONFIG.get("intermediate_output", True):
        if entry["results"]:
            for r in entry["results"]:
                print(f"{r['key']} -> {r['plaintext']}")
                if plaintext and strip_message(plaintext).upper() == r["plaintext"]:
                    print("[MATCH] Recovered plaintext matches the stored plaintext")
        else:
            print(f"No key found for entry '{entry_id}' with lengths {key_lengths}")
        print(f"It took {elapsed_ms:.0f}ms")

    return entry


def break_cipher_from_file(entry_id, messages_json_path_override: Optional[str] = None):
    """Load entry from messages.json, run the breaker, and write results back."""
    set_config(CONFIG)

    cfg = CONFIG.copy()
    if messages_json_path_override is not None:
        cfg["messages_json_path"] = messages_json_path_override

    messages_json_path = cfg["messages_json_path"]
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
    ciphertext = entry.get("ciphertext")
    key = entry.get("key")

    key_lengths = entry.get("lengths")
    if isinstance(key_lengths, list) and key_lengths:
        print(
            f"Using candidate lengths from messages.json for entry '{key_str}': {key_lengths}"
        )
    else:
        key_lengths = cfg.get("key_lengths") or [3, 4, 5]

    first_word_length = entry.get("first_word_length") or cfg.get("first_word_length")
    if not first_word_length and plaintext and plaintext.split():
        first_word_length = len(strip_message(plaintext.split()[0]))
        print(
            f"Entry '{key_str}': no first_word_length given, using {first_word_length} "
            "from the stored plaintext"
        )
    if not first_word_length:
        raise ValueError(f"Entry '{key_str}' has no 'first_word_length' field")

    if not ciphertext and plaintext:
        if not key:
            raise ValueError(
                f"Entry '{key_str}' has no ciphertext and no 'key' to generate one"
            )
        print(
            f"Entry '{key_str}': no ciphertext found, generating from plaintext using key '{key}'"
        )
        ciphertext = encrypt_message(plaintext, key)
        print(f"       Ciphertext: {ciphertext[:80]}{'...' if len(ciphertext)>80 else ''}")
        entry["ciphertext"] = ciphertext
        data[key_str] = entry
        with open(messages_json_path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
        print(f"  Wrote generated ciphertext back to {messages_json_path}\n")

    if not ciphertext:
        raise ValueError(f"Entry '{key_str}' contains no ciphertext to break")

    updated_entry = process_entry_logic(
        entry_id=key_str,
        ciphertext=ciphertext,
        key_lengths=key_lengths,
        first_word_length=first_word_length,
        cfg=cfg,
        plaintext=plaintext,
        key=key,
    )

    if updated_entry.get("_keyboard_interrupt"):
        print(
            f"Processing for entry '{key_str}' was interrupted by user; not writing results to {messages_json_path}"
        )
        return updated_entry

    if cfg.get("key_search_only", False):
        print(
            f"Key-search-only mode enabled: not writing results back to {messages_json_path}"
        )
        return updated_entry

    existing_entry = data.get(key_str, {})
    existing_entry["results"] = updated_entry.get("results", [])

    top_results = existing_entry["results"]
    if top_results:
        write_key = top_results[0]["key"]
        write_plaintext = top_results[0]["plaintext"]
        if cfg.get("overwrite_json_entries", False):
            existing_entry["key"] = write_key
            existing_entry["plaintext"] = write_plaintext
        else:
            if not existing_entry.get("key"):
                existing_entry["key"] = write_key
            if not existing_entry.get("plaintext"):
                existing_entry["plaintext"] = write_plaintext

    data[key_str] = existing_entry
    with open(messages_json_path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)

    print(
        f"Finished processing entry '{key_str}', results written to {messages_json_path}"
    )

    return updated_entry


def break_cipher(
    plaintext: str,
    key: str,
    key_lengths: Optional[Iterable[int]] = None,
    first_word_length: Optional[int] = None,
):
    """Encrypt plaintext with key, then run the breaker on the result."""
    set_config(CONFIG)

    ciphertext = encrypt_message(plaintext, key)

    cfg = CONFIG.copy()
    if key_lengths is None:
        key_lengths = [len(strip_message(key))]
    if first_word_length is None:
        first_word_length = len(strip_message(plaintext.split()[0]))

    updated_entry = process_entry_logic(
        entry_id="break_cipher",
        ciphertext=ciphertext,
        key_lengths=list(key_lengths),
        first_word_length=first_word_length,
        cfg=cfg,
        plaintext=plaintext,
        key=key,
    )

    print("\nBreak-cipher finished.")
    for r in updated_entry.get("results", []):
        print(f"  length={r.get('length')} key={r.get('key')} attempts={r.get('attempts')}")
    return updated_entry


if __name__ == "__main__":

    # Example invocation: provide plaintext, key and optional key lengths

    # break_cipher(
    #     plaintext="SECRET MESSAGES SHOULD NEVER TRAVEL WITHOUT A GOOD KEY",
    #     key="LEMON",
    # )

    break_cipher_from_file(1)
