"""Program-name strategies.

A name factory is any zero-argument callable returning the program name
written after ``O``.  The builder only calls it when no explicit name is
configured.
"""

from __future__ import annotations

import itertools
import random
from typing import Callable, Iterator

NameFactory = Callable[[], str]


def seeded_names(seed: int | None = 0) -> NameFactory:
    """Return a factory yielding reproducible three-digit names.

    Parameters
    ----------
    seed : int | None
        Seed for the private random generator.  Two factories built with
        the same seed produce the same sequence of names.

    Examples
    --------
    >>> factory = seeded_names(7)
    >>> len(factory())
    3
    """
    rng = random.Random(seed)

    def _next_name() -> str:
        return f"{rng.randrange(1000):03d}"

    return _next_name


def sequential_names(start: int = 1) -> NameFactory:
    """Return a factory yielding ``001``, ``002``, ... from *start*."""
    counter: Iterator[int] = itertools.count(start)

    def _next_name() -> str:
        return f"{next(counter) % 1000:03d}"

    return _next_name
