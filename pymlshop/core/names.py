"""Model name utilities."""

from __future__ import annotations


def make_unique(names: list[str]) -> list[str]:
    """
    Make names unique by appending .1, .2, ... to repeats.

    >>> make_unique(["A", "A", "B", "A"])
    ['A', 'A.1', 'B', 'A.2']
    """
    taken = set()
    counts: dict[str, int] = {}
    out = []
    for name in names:
        candidate = name
        k = counts.get(name, 0)
        while candidate in taken:
            k += 1
            candidate = f"{name}.{k}"
        counts[name] = k
        taken.add(candidate)
        out.append(candidate)
    return out
