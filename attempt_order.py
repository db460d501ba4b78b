"""
Ranked attempt order for repeating-key candidates.

A combination holds one rank offset per key position (0 = best guess). All
combinations are produced grouped by how many positions deviate from the best
guess, fewest first, so the most probable keys are tried before the rest.
"""

from math import comb
from typing import List, Optional, Tuple

Combination = List[int]


def _check_sizes(key_length: int, num_letters: int):
    if any(
        not isinstance(size, int) or isinstance(size, bool)
        for size in (key_length, num_letters)
    ):
        raise TypeError("key_length and num_letters must be integers")
    if key_length < 0:
        raise ValueError(f"key_length must be >= 0, got {key_length}")
    if num_letters < 0:
        raise ValueError(f"num_letters must be >= 0, got {num_letters}")


def max_changes(key_length: int, num_letters: int) -> int:
    """Highest reachable change level (0 when no letter can be changed)."""
    return key_length if num_letters >= 2 else 0


def level_size(key_length: int, num_letters: int, num_changes: int) -> int:
    """Number of combinations with exactly num_changes nonzero entries."""
    if num_changes < 0 or num_changes > max_changes(key_length, num_letters):
        return 0
    return comb(key_length, num_changes) * (num_letters - 1) ** num_changes


def total_attempts(key_length: int, num_letters: int) -> int:
    """Size of the whole search space."""
    _check_sizes(key_length, num_letters)
    if num_letters < 2:
        return 1
    return num_letters**key_length


def decode_combination(
    key_length: int, num_letters: int, num_changes: int, combination_num: int
) -> Combination:
    """
    Decode the combination_num-th combination of a change level.

    Slots are resolved left to right against the open positions. For each slot
    the value offset is the most significant choice and the position among the
    open ones the least; every open position up to the chosen one is closed
    afterwards, so positions are assigned in increasing order.
    """
    _check_sizes(key_length, num_letters)
    size = level_size(key_length, num_letters, num_changes)
    if not 0 <= combination_num < size:
        raise ValueError(
            f"combination_num {combination_num} outside level {num_changes} "
            f"(size {size})"
        )

    combination = [0] * key_length
    values = num_letters - 1
    open_positions = list(range(key_length))
    n = combination_num

    for change_num in range(1, num_changes + 1):
        remaining = num_changes - change_num
        tails = values**remaining

        # Every value offset covers the same number of indices
        value_offset, n = divmod(n, comb(len(open_positions), remaining + 1) * tails)

        for slot, position in enumerate(open_positions):
            part = comb(len(open_positions) - slot - 1, remaining) * tails
            if n < part:
                break
            n -= part

        combination[position] = value_offset + 1
        open_positions = open_positions[slot + 1 :]

    return combination


def combination_number(combination: Combination, num_letters: int) -> Tuple[int, int]:
    """
    Inverse of decode_combination: return (num_changes, combination_num).
    Not used by the search itself; for callers that need to resume from a
    known combination.
    """
    key_length = len(combination)
    _check_sizes(key_length, num_letters)
    if any(v < 0 or v >= max(num_letters, 1) for v in combination):
        raise ValueError(
            f"combination {combination} has values outside [0, {num_letters - 1}]"
        )

    changed = [(p, v) for p, v in enumerate(combination) if v > 0]
    num_changes = len(changed)
    values = num_letters - 1
    open_count = key_length
    first_open = 0
    n = 0

    for change_num, (position, value) in enumerate(changed, start=1):
        remaining = num_changes - change_num
        tails = values**remaining
        n += (value - 1) * comb(open_count, remaining + 1) * tails
        for slot in range(position - first_open):
            n += comb(open_count - slot - 1, remaining) * tails
        open_count -= position - first_open + 1
        first_open = position + 1

    return num_changes, n


def is_last_combination(combination: Combination, num_letters: int) -> bool:
    """
    Structural check for the final combination of a change level: all changes
    sit contiguously at the tail and hold the maximum value. AttemptOrder
    terminates arithmetically; this is for callers holding only a combination.
    """
    has_seen_changes = False
    for p in combination:
        if p > 0:
            has_seen_changes = True
            if p != num_letters - 1:
                return False
        elif has_seen_changes:
            return False
    return True


def locate(key_length: int, num_letters: int, index: int) -> Tuple[int, int]:
    """Map a global attempt index to (num_changes, combination_num)."""
    total = total_attempts(key_length, num_letters)
    if not 0 <= index < total:
        raise ValueError(f"index {index} outside [0, {total})")
    num_changes = 0
    while index >= level_size(key_length, num_letters, num_changes):
        index -= level_size(key_length, num_letters, num_changes)
        num_changes += 1
    return num_changes, index


def attempt_index(
    key_length: int, num_letters: int, num_changes: int, combination_num: int
) -> int:
    """Map (num_changes, combination_num) to its global attempt index."""
    _check_sizes(key_length, num_letters)
    if not 0 <= combination_num < level_size(key_length, num_letters, num_changes):
        raise ValueError(
            f"({num_changes}, {combination_num}) is not a valid attempt position"
        )
    before = sum(level_size(key_length, num_letters, c) for c in range(num_changes))
    return before + combination_num


class AttemptOrder:
    """
    Iterator over every combination, fewest changes first.

    The cursor only moves forward; once exhausted it stays exhausted. A start
    position may be given to resume or to split the space between workers.
    """

    def __init__(
        self,
        key_length: int,
        num_letters: int,
        num_changes: int = 0,
        combination_num: int = 0,
    ):
        _check_sizes(key_length, num_letters)
        if not 0 <= combination_num < level_size(
            key_length, num_letters, num_changes
        ):
            raise ValueError(
                f"start ({num_changes}, {combination_num}) is outside the attempt "
                f"space for key_length={key_length} num_letters={num_letters}"
            )

        self.key_length = key_length
        self.num_letters = num_letters
        self.num_changes = num_changes
        self.combination_num = combination_num
        self.combination: Optional[Combination] = None
        self._is_first = True
        self._exhausted = False

    @classmethod
    def from_index(cls, key_length: int, num_letters: int, index: int):
        """Start at a global attempt index."""
        num_changes, combination_num = locate(key_length, num_letters, index)
        return cls(key_length, num_letters, num_changes, combination_num)

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def index(self) -> int:
        """Global index of the combination most recently returned."""
        return attempt_index(
            self.key_length, self.num_letters, self.num_changes, self.combination_num
        )

    def is_last(self) -> bool:
        """Check if the current combination is the last with this num_changes."""
        return (
            self.combination_num
            == level_size(self.key_length, self.num_letters, self.num_changes) - 1
        )

    def _advance(self) -> bool:
        if not self.is_last():
            self.combination_num += 1
            return True
        if self.num_changes >= max_changes(self.key_length, self.num_letters):
            return False
        self.num_changes += 1
        self.combination_num = 0
        return True

    def __iter__(self):
        return self

    def __next__(self) -> Combination:
        if self._exhausted:
            raise StopIteration

        if self._is_first:
            self._is_first = False
        elif not self._advance():
            self._exhausted = True
            self.combination = None
            raise StopIteration

        self.combination = decode_combination(
            self.key_length, self.num_letters, self.num_changes, self.combination_num
        )
        return list(self.combination)
