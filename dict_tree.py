from typing import Iterable, List, Optional

from cipher_implementation import ALPHABET_SIZE

Encoded = List[int]


class Node:
    """One letter of a dictionary word; children are indexed by letter code."""

    __slots__ = ("children", "is_word")

    def __init__(self):
        self.children: List[Optional["Node"]] = [None] * ALPHABET_SIZE
        self.is_word = False

    def add(self, word: Encoded) -> bool:
        """Add a word below this node. Returns True if it was new."""
        node = self
        for code in word:
            child = node.children[code]
            if child is None:
                child = Node()
                node.children[code] = child
            node = child
        added = not node.is_word
        node.is_word = True
        return added

    def walk(self, string: Encoded) -> Optional["Node"]:
        """Follow one edge per symbol, stopping at the first missing edge."""
        node = self
        for code in string:
            node = node.children[code]
            if node is None:
                return None
        return node


class DictTree:
    """
    A representation of a dictionary's possible words as a tree of letters
    """

    def __init__(self, dictionary: Iterable[Encoded] = ()):
        self.head = Node()
        self._size = 0
        for word in dictionary:
            self.add(word)

    def add(self, word: Encoded) -> bool:
        if any(not 0 <= c < ALPHABET_SIZE for c in word):
            raise ValueError(f"word {word} has codes outside [0, {ALPHABET_SIZE})")
        added = self.head.add(word)
        if added:
            self._size += 1
        return added

    def exists(self, string: Encoded) -> bool:
        """Find out if a string is a path (prefix of some word) in this tree."""
        return self.head.walk(string) is not None

    def contains(self, word: Encoded) -> bool:
        """Find out if a complete word is stored in this tree."""
        node = self.head.walk(word)
        return node is not None and node.is_word

    def __len__(self) -> int:
        return self._size

    def __contains__(self, word) -> bool:
        return self.contains(word)
