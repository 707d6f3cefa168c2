"""
Case-insensitive lookup by name.

NPCs, locations, quests, spells and catalog items are all addressed by
human-typed names. Every lookup in the kernel goes through this module so
that "The Rusty Flagon", "the rusty flagon" and " The Rusty Flagon " all
resolve to the same entity.
"""

from typing import Callable, Generic, Iterable, Iterator, Optional, TypeVar

T = TypeVar("T")


def normalize_name(name: str) -> str:
    """Fold a name to its lookup key."""
    return " ".join(name.split()).lower()


def names_match(a: str, b: str) -> bool:
    return normalize_name(a) == normalize_name(b)


def find_by_name(
    items: Iterable[T],
    name: str,
    key: Callable[[T], str] = lambda item: item.name,  # type: ignore[attr-defined]
) -> Optional[T]:
    """
    Return the first item whose name matches, ignoring case and spacing.

    Args:
        items: Candidates to search
        name: Name to look for
        key: Extracts the name from a candidate

    Returns:
        The matching item, or None
    """
    wanted = normalize_name(name)
    for item in items:
        if normalize_name(key(item)) == wanted:
            return item
    return None


def find_containing(
    items: Iterable[T],
    fragment: str,
    key: Callable[[T], str],
) -> Optional[T]:
    """Return the first item whose name contains the fragment, ignoring case."""
    wanted = normalize_name(fragment)
    for item in items:
        if wanted in normalize_name(key(item)):
            return item
    return None


class NameIndex(Generic[T]):
    """A name-keyed registry with case-insensitive lookup."""

    def __init__(self) -> None:
        self._by_name: dict[str, T] = {}

    def register(self, name: str, value: T) -> None:
        self._by_name[normalize_name(name)] = value

    def get(self, name: str) -> Optional[T]:
        return self._by_name.get(normalize_name(name))

    def remove(self, name: str) -> Optional[T]:
        return self._by_name.pop(normalize_name(name), None)

    def clear(self) -> None:
        self._by_name.clear()

    def values(self) -> list[T]:
        return list(self._by_name.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_name(name) in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)

    def __iter__(self) -> Iterator[T]:
        return iter(self._by_name.values())
