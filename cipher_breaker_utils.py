import concurrent.futures
import multiprocessing
from typing import List, Tuple, Dict, Optional, Iterable, Union

from attempt_order import AttemptOrder, total_attempts
from cipher_implementation import ALPHABET_SIZE, decode, decrypt_str, encode
from cipher_breaker_helpers import (
    set_config_helpers,
    rank_key_letters,
    choose_key,
    check_attempt,
    format_combination,
)
from dict_tree import DictTree

Encoded = List[int]

CONFIG: Dict = {}

_STOP_EVENT = None
_KEYBOARD_INTERRUPT_FLAG = False

STOP_CHECK_EVERY = 4096


def set_keyboard_interrupt() -> None:
    """Mark that a KeyboardInterrupt was seen."""
    global _KEYBOARD_INTERRUPT_FLAG
    _KEYBOARD_INTERRUPT_FLAG = True


def clear_keyboard_interrupt() -> None:
    """Clear the KeyboardInterrupt flag."""
    global _KEYBOARD_INTERRUPT_FLAG
    _KEYBOARD_INTERRUPT_FLAG = False


def was_keyboard_interrupted() -> bool:
    """Query whether a KeyboardInterrupt has been signalled."""
    return bool(_KEYBOARD_INTERRUPT_FLAG)


def _worker_initializer(stop_event, config_dict):
    """Initialize worker process with shared stop event and CONFIG."""
    global _STOP_EVENT
    _STOP_EVENT = stop_event
    set_config(config_dict)
    set_config_helpers(config_dict)


def _should_stop() -> bool:
    """Check if worker should stop (cooperative cancellation)."""
    return _STOP_EVENT is not None and _STOP_EVENT.is_set()


def set_config(cfg: Dict):
    """Initialize module-level CONFIG."""
    global CONFIG
    if isinstance(cfg, dict):
        CONFIG = cfg.copy()
    else:
        CONFIG = dict(cfg)


def debug(*args, **kwargs):
    """Print only when CONFIG['debug_output'] is True."""
    if CONFIG.get("debug_output", False):
        print(*args, **kwargs)


class FirstWordVerifier:
    """
    Accepts an attempt when it starts with a first-word candidate, either by a
    linear scan of the candidates or by walking a DictTree.
    """

    def __init__(self, first_word_dict: List[Encoded], use_dict_tree: bool = True):
        self.word_lengths = sorted({len(w) for w in first_word_dict})
        self.prefix_length = self.word_lengths[-1] if self.word_lengths else 0
        self.use_dict_tree = use_dict_tree
        if use_dict_tree:
            self.tree = DictTree(first_word_dict)
            self.words = None
        else:
            self.tree = None
            self.words = first_word_dict

    def __call__(self, attempt: Encoded) -> bool:
        if not self.use_dict_tree:
            return check_attempt(attempt, self.words)
        for length in self.word_lengths:
            if length > len(attempt):
                break
            if self.tree.contains(attempt[:length]):
                return True
        return False


def search_attempt_range(
    ciphertext: Encoded,
    best_keys: List[List[int]],
    verify: FirstWordVerifier,
    start_index: int = 0,
    max_attempts: Optional[int] = None,
    status_every: int = 0,
) -> Tuple[Optional[Dict], int]:
    """
    Try keys in attempt order from start_index on. Returns (result, attempts)
    where result describes the first key whose decryption passes verify.
    """
    key_length = len(best_keys)
    num_letters = len(best_keys[0])
    prefix = ciphertext[: verify.prefix_length]
    order = AttemptOrder.from_index(key_length, num_letters, start_index)

    attempts = 0
    for combination in order:
        if max_attempts is not None and attempts >= max_attempts:
            break
        attempts += 1

        key = choose_key(best_keys, combination)
        if verify(decrypt_str(prefix, key)):
            plaintext = decrypt_str(ciphertext, key)
            return {
                "length": key_length,
                "key": decode(key).upper(),
                "plaintext": decode(plaintext).upper(),
                "combination": combination,
                "num_changes": order.num_changes,
                "combination_num": order.combination_num,
                "index": order.index,
            }, attempts

        if attempts % STOP_CHECK_EVERY == 0 and _should_stop():
            debug(f"search_attempt_range: stop requested after {attempts} attempts")
            break
        if status_every and attempts % status_every == 0:
            print(
                f"[STATUS] attempts={attempts} changes={order.num_changes} "
                f"combination={format_combination(combination)}"
            )

    return None, attempts


def key_search_worker(args):
    """Worker that searches one chunk of the attempt order."""
    (
        ciphertext,
        best_keys,
        first_word_dict,
        start_index,
        max_attempts,
        use_dict_tree,
    ) = args
    try:
        verify = FirstWordVerifier(first_word_dict, use_dict_tree)
        result, attempts = search_attempt_range(
            ciphertext, best_keys, verify, start_index, max_attempts
        )
        return start_index, result, attempts, ""
    except Exception:
        import traceback

        return start_index, None, 0, traceback.format_exc()


class VigenereBreaker:
    """
    Repeating-key breaker: ranks key letters by frequency fit per position and
    tries keys in attempt order until the decryption starts with a dictionary
    word.
    """

    def __init__(self, config: Optional[Dict] = None):
        if config is not None:
            set_config(config)
            set_config_helpers(config)
        self.num_letters = min(
            int(CONFIG.get("alphabet_size", ALPHABET_SIZE)), ALPHABET_SIZE
        )
        if self.num_letters < 1:
            raise ValueError(
                f"alphabet_size must be >= 1, got {CONFIG.get('alphabet_size')}"
            )
        self.use_dict_tree = CONFIG.get("use_dict_tree", True)

        debug(
            f"VigenereBreaker(num_letters={self.num_letters}, "
            f"verifier={'DictTree' if self.use_dict_tree else 'linear'})"
        )

    def make_verifier(self, first_word_dict: List[Encoded]) -> FirstWordVerifier:
        return FirstWordVerifier(first_word_dict, self.use_dict_tree)

    def rank_key_letters(
        self, ciphertext: Encoded, key_length: int, dict_freqs: List[float]
    ) -> List[List[int]]:
        """Ranked key letters per position, cut to the configured alphabet size."""
        ranked = rank_key_letters(ciphertext, key_length, dict_freqs)
        return [letters[: self.num_letters] for letters in ranked]

    def _finish(self, result: Optional[Dict], start_index: int) -> Optional[Dict]:
        if result is not None:
            result["attempts"] = result["index"] - start_index + 1
            if CONFIG.get("intermediate_output", True):
                print(
                    f"[FOUND] key='{result['key']}' after {result['attempts']} attempts "
                    f"(changes={result['num_changes']}) -> {result['plaintext']}"
                )
        return result

    def attempt_keys(
        self,
        ciphertext: Encoded,
        best_keys: List[List[int]],
        first_word_dict: List[Encoded],
        start_index: int = 0,
        max_attempts: Optional[int] = None,
    ) -> Optional[Dict]:
        """Sequential search; returns the first verified key or None."""
        verify = self.make_verifier(first_word_dict)
        status_every = (
            CONFIG.get("status_every", 0)
            if CONFIG.get("intermediate_output", True)
            else 0
        )
        try:
            result, attempts = search_attempt_range(
                ciphertext,
                best_keys,
                verify,
                start_index,
                max_attempts,
                status_every,
            )
        except KeyboardInterrupt:
            if CONFIG.get("intermediate_output", True):
                print("\n[KEYBOARD-INTERRUPT] Ctrl+C detected, stopping key search...")
            set_keyboard_interrupt()
            return None

        debug(f"attempt_keys: tried {attempts} keys from index {start_index}")
        return self._finish(result, start_index)

    def attempt_keys_parallel(
        self,
        ciphertext: Encoded,
        best_keys: List[List[int]],
        first_word_dict: List[Encoded],
        start_index: int = 0,
        max_attempts: Optional[int] = None,
    ) -> Optional[Dict]:
        """
        Split the attempt order into chunks and search them in worker processes.
        Chunks are submitted in waves; the earliest hit of the first wave that
        has one is returned, so the result matches the sequential search. A
        chunk whose worker fails is searched again in this process.
        """
        key_length = len(best_keys)
        total = total_attempts(key_length, len(best_keys[0]))
        end = total if max_attempts is None else min(total, start_index + max_attempts)
        chunk_size = max(1, int(CONFIG.get("attempts_per_chunk", 100000)))
        workers = max(1, int(CONFIG.get("key_search_workers", 4)))
        chunk_starts = list(range(start_index, end, chunk_size))

        if CONFIG.get("intermediate_output", True):
            print(
                f"[KEY-SEARCH] {end - start_index} attempts in {len(chunk_starts)} "
                f"chunks over {workers} workers"
            )

        manager = multiprocessing.Manager()
        stop_event = manager.Event()
        best: Optional[Dict] = None

        try:
            with concurrent.futures.ProcessPoolExecutor(
                max_workers=workers,
                initializer=_worker_initializer,
                initargs=(stop_event, CONFIG),
            ) as executor:
                try:
                    for wave_start in range(0, len(chunk_starts), workers):
                        wave = chunk_starts[wave_start : wave_start + workers]
                        futures = [
                            executor.submit(
                                key_search_worker,
                                (
                                    ciphertext,
                                    best_keys,
                                    first_word_dict,
                                    chunk_start,
                                    min(chunk_size, end - chunk_start),
                                    self.use_dict_tree,
                                ),
                            )
                            for chunk_start in wave
                        ]

                        hits = []
                        for future in concurrent.futures.as_completed(futures):
                            chunk_start, result, attempts, worker_log = future.result()
                            if worker_log:
                                if CONFIG.get("intermediate_output", True):
                                    print(
                                        f"[KEY-SEARCH] Worker for chunk {chunk_start} "
                                        f"failed, searching it here:\n{worker_log}"
                                    )
                                result, attempts = search_attempt_range(
                                    ciphertext,
                                    best_keys,
                                    self.make_verifier(first_word_dict),
                                    chunk_start,
                                    min(chunk_size, end - chunk_start),
                                )
                            debug(
                                f"[KEYSEARCH] chunk {chunk_start} done: "
                                f"attempts={attempts} hit={result is not None}"
                            )
                            if result is not None:
                                hits.append(result)

                        if hits:
                            best = min(hits, key=lambda r: r["index"])
                            break

                        if CONFIG.get("intermediate_output", True):
                            print(
                                f"[STATUS] searched up to index "
                                f"{min(end, wave[-1] + chunk_size)} of {end}"
                            )

                except KeyboardInterrupt:
                    if CONFIG.get("intermediate_output", True):
                        print(
                            "\n[KEYBOARD-INTERRUPT] Ctrl+C detected, stopping workers..."
                        )
                    set_keyboard_interrupt()
                    stop_event.set()
                    return None
        finally:
            manager.shutdown()

        return self._finish(best, start_index)

    def break_vigenere(
        self,
        ciphertext: Union[str, Encoded],
        key_lengths: Iterable[int],
        first_word_dict: List[Encoded],
        dict_freqs: List[float],
    ) -> Dict[int, Optional[Dict]]:
        """Try every candidate key length and return the result per length."""
        encoded = encode(ciphertext) if isinstance(ciphertext, str) else list(ciphertext)

        if not first_word_dict:
            raise ValueError("first_word_dict is empty; nothing to verify against")
        shortest = min(len(w) for w in first_word_dict)
        if len(encoded) < shortest:
            raise ValueError(
                f"ciphertext has {len(encoded)} letters, shorter than any "
                f"first-word candidate ({shortest})"
            )

        workers = int(CONFIG.get("key_search_workers", 1))
        chunk_size = int(CONFIG.get("attempts_per_chunk", 100000))
        results: Dict[int, Optional[Dict]] = {}

        for key_length in key_lengths:
            if key_length < 1:
                raise ValueError(f"key length must be >= 1, got {key_length}")

            best_keys = self.rank_key_letters(encoded, key_length, dict_freqs)
            total = total_attempts(key_length, self.num_letters)

            if CONFIG.get("intermediate_output", True):
                best_guess = decode(choose_key(best_keys, [0] * key_length)).upper()
                print(
                    f"\n[KEY-SEARCH] key_length={key_length} best guess='{best_guess}' "
                    f"search space={total}"
                )

            if workers > 1 and total > chunk_size:
                result = self.attempt_keys_parallel(encoded, best_keys, first_word_dict)
            else:
                result = self.attempt_keys(encoded, best_keys, first_word_dict)

            results[key_length] = result

            if was_keyboard_interrupted():
                break
            if result is not None and CONFIG.get("stop_on_first_hit", True):
                break

        return results

    def decrypt_with_key(self, ciphertext: str, key: str) -> str:
        """Decrypt a ciphertext with a given key string."""
        return decode(decrypt_str(encode(ciphertext), encode(key))).upper()
