from typing import List, Tuple, Dict, Optional, Iterable
import json
import os

from cipher_implementation import ALPHABET_SIZE, encode, strip_message, stride

Encoded = List[int]
WordList = List[Encoded]

CONFIG: Dict = {}

DEFAULT_CACHE_DIR = os.path.join(os.path.dirname(__file__), "auxiliary", "cache")
DEFAULT_DICTIONARY = os.path.join(
    os.path.dirname(__file__), "auxiliary", "english_dictionary.txt"
)
FREQUENCIES_FILE = "frequencies.json"


def set_config_helpers(cfg: Dict):
    """Initialize module-level CONFIG (copy) so helpers use the same settings as caller."""
    global CONFIG
    if isinstance(cfg, dict):
        CONFIG = cfg.copy()
    else:
        CONFIG = dict(cfg)


def debug(*args, **kwargs):
    """Print only when CONFIG['debug_output'] is True."""
    if CONFIG.get("debug_output", False):
        print(*args, **kwargs)


def _cache_dir(cache_dir: Optional[str] = None) -> str:
    if cache_dir is not None:
        return cache_dir
    return CONFIG.get("cache_dir") or DEFAULT_CACHE_DIR


#
# DICTIONARY
#


def get_dictionary(file_path: str) -> List[str]:
    """Read whitespace separated words from a dictionary file."""
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"Dictionary file not found at: {file_path}")
    with open(file_path, "r", encoding="utf-8") as fh:
        return fh.read().split()


def encode_dictionary(words: Iterable[str]) -> WordList:
    """Encode dictionary words, skipping those with no letters at all."""
    return [encode(w) for w in words if strip_message(w)]


def filter_dictionary(words: Iterable[str], length: int) -> List[str]:
    """
    Filter a given dictionary to only include words of a certain length.
    Works on raw words; the breaker filters encoded words instead, so this is
    for callers inspecting a word list before encoding.
    """
    return [w for w in words if len(w) == length]


#
# FREQUENCIES
#


def _normalize(table: List[float]) -> List[float]:
    total = sum(table)
    if total == 0:
        return [0.0] * len(table)
    return [e / total for e in table]


def gen_dict_freqs(dictionary: WordList) -> List[float]:
    """Generate the relative frequencies of letters in the dictionary."""
    table = [0.0] * ALPHABET_SIZE
    for word in dictionary:
        for c in word:
            table[c] += 1.0
    return _normalize(table)


def gen_freqs(encoded: Encoded) -> List[float]:
    """Generate the relative frequencies of letters in an encoded string."""
    table = [0.0] * ALPHABET_SIZE
    for c in encoded:
        table[c] += 1.0
    return _normalize(table)


def find_best_offsets(reference: List[float], observed: List[float]) -> List[int]:
    """
    Rank every shift from best to worst frequency match.

    The fitness of a shift is the summed absolute difference between the
    reference frequency of each letter and the observed frequency of that
    letter moved by the shift (lowest is best). Ties keep the smaller shift
    first.
    """
    fitness_list: List[Tuple[float, int]] = []
    for offset in range(ALPHABET_SIZE):
        fitness = 0.0
        for i in range(ALPHABET_SIZE):
            fitness += abs(reference[i] - observed[(i + offset) % ALPHABET_SIZE])
        fitness_list.append((fitness, offset))

    fitness_list.sort(key=lambda x: x[0])
    debug(f"find_best_offsets: {[(round(f, 4), o) for f, o in fitness_list[:5]]}")
    return [offset for _, offset in fitness_list]


def rank_key_letters(
    ciphertext: Encoded, key_length: int, dict_freqs: List[float]
) -> List[List[int]]:
    """For every key position, return all key letters from most to least likely."""
    best_keys = []
    for key_part in range(key_length):
        relevant_ciphertext = stride(ciphertext, key_length, key_part)
        best_keys.append(
            find_best_offsets(dict_freqs, gen_freqs(relevant_ciphertext))
        )
    return best_keys


def choose_key(best_keys: List[List[int]], combination: List[int]) -> Encoded:
    """Get a key from the ranked key letters and a combination of rank offsets."""
    return [best_keys[i][c] for i, c in enumerate(combination)]


def check_attempt(attempt: Encoded, first_word_dict: WordList) -> bool:
    """Check if an attempted decryption starts with any first-word candidate."""
    for word in first_word_dict:
        if len(attempt) < len(word):
            continue
        for i, letter in enumerate(word):
            if letter != attempt[i]:
                break
        else:
            return True
    return False


def format_combination(combination: List[int]) -> str:
    return "[" + ",".join(str(c) for c in combination) + "]"


#
# CACHES
#


def dictionary_source(dictionary_path: str) -> Dict:
    """Identify a dictionary file by path, size and modification time."""
    if not os.path.isfile(dictionary_path):
        raise FileNotFoundError(f"Dictionary file not found at: {dictionary_path}")
    stat = os.stat(dictionary_path)
    return {
        "path": os.path.abspath(dictionary_path),
        "size": stat.st_size,
        "mtime_ns": stat.st_mtime_ns,
    }


def _write_cache(path: str, data, source: Optional[Dict]):
    with open(path, "w", encoding="utf-8") as fh:
        json.dump({"source": source, "data": data}, fh)


def _read_cache(path: str, source: Optional[Dict]):
    """Load a cache file; raise ValueError if it is malformed or built from another source."""
    with open(path, "r", encoding="utf-8") as fh:
        cached = json.load(fh)
    if not isinstance(cached, dict) or "data" not in cached:
        raise ValueError(f"Cache file at {path} is malformed")
    if source is not None and cached.get("source") != source:
        raise ValueError(f"Cache file at {path} was built from another dictionary")
    return cached["data"]


def write_dict_freqs(
    freqs: List[float], cache_dir: Optional[str] = None, source: Optional[Dict] = None
) -> str:
    """Write the dictionary frequency table to the cache directory."""
    cache_dir = _cache_dir(cache_dir)
    os.makedirs(cache_dir, exist_ok=True)
    path = os.path.join(cache_dir, FREQUENCIES_FILE)
    _write_cache(path, freqs, source)
    debug(f"[CACHE] Wrote frequencies to {path}")
    return path


def read_dict_freqs(
    cache_dir: Optional[str] = None, source: Optional[Dict] = None
) -> List[float]:
    path = os.path.join(_cache_dir(cache_dir), FREQUENCIES_FILE)
    freqs = _read_cache(path, source)
    if not isinstance(freqs, list) or len(freqs) != ALPHABET_SIZE:
        raise ValueError(f"Cached frequencies at {path} are malformed")
    return [float(f) for f in freqs]


def write_first_word_dicts(
    dictionary: WordList,
    length: int,
    cache_dir: Optional[str] = None,
    source: Optional[Dict] = None,
) -> WordList:
    """
    Write one first-word dictionary cache file per word length and return the
    one for the requested length. A stale file for a length the dictionary no
    longer has is overwritten with an empty list.
    """
    cache_dir = _cache_dir(cache_dir)
    os.makedirs(cache_dir, exist_ok=True)

    dicts_by_length: Dict[int, WordList] = {}
    for word in dictionary:
        dicts_by_length.setdefault(len(word), []).append(list(word))
    dicts_by_length.setdefault(length, [])

    for word_length, words in dicts_by_length.items():
        path = os.path.join(cache_dir, f"dict{word_length}.json")
        _write_cache(path, words, source)

    debug(
        f"[CACHE] Wrote {len(dicts_by_length)} first-word dictionaries to {cache_dir}"
    )
    return dicts_by_length[length]


def read_first_word_dict(
    length: int, cache_dir: Optional[str] = None, source: Optional[Dict] = None
) -> WordList:
    path = os.path.join(_cache_dir(cache_dir), f"dict{length}.json")
    words = _read_cache(path, source)
    if not isinstance(words, list) or not all(
        isinstance(word, list)
        and len(word) == length
        and all(
            isinstance(c, int) and not isinstance(c, bool) and 0 <= c < ALPHABET_SIZE
            for c in word
        )
        for word in words
    ):
        raise ValueError(f"Cached first-word dictionary at {path} is malformed")
    return words


def _dictionary_path(dictionary_path: Optional[str]) -> str:
    return dictionary_path or CONFIG.get("dictionary_path") or DEFAULT_DICTIONARY


def get_first_word_dict(
    length: int,
    dictionary_path: Optional[str] = None,
    cache_dir: Optional[str] = None,
) -> WordList:
    """
    Load the encoded first-word dictionary. The cache is only used when it was
    built from the same dictionary file; otherwise it is rebuilt.
    """
    dictionary_path = _dictionary_path(dictionary_path)
    if CONFIG.get("use_cache", True):
        source = dictionary_source(dictionary_path)
        try:
            return read_first_word_dict(length, cache_dir, source)
        except (OSError, ValueError) as e:
            debug(f"[CACHE] No usable first-word cache for length {length}: {e}")

    dictionary = encode_dictionary(get_dictionary(dictionary_path))
    if CONFIG.get("use_cache", True):
        return write_first_word_dicts(dictionary, length, cache_dir, source)
    return [w for w in dictionary if len(w) == length]


def get_dict_freqs(
    dictionary_path: Optional[str] = None, cache_dir: Optional[str] = None
) -> List[float]:
    """Load the dictionary letter frequencies, rebuilding a missing or stale cache."""
    dictionary_path = _dictionary_path(dictionary_path)
    if CONFIG.get("use_cache", True):
        source = dictionary_source(dictionary_path)
        try:
            return read_dict_freqs(cache_dir, source)
        except (OSError, ValueError) as e:
            debug(f"[CACHE] No usable frequency cache: {e}")

    freqs = gen_dict_freqs(encode_dictionary(get_dictionary(dictionary_path)))
    if CONFIG.get("use_cache", True):
        write_dict_freqs(freqs, cache_dir, source)
    return freqs
