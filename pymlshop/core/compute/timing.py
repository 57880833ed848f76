"""
Wall-clock timing of fits and resampling runs.

Results carry a timing dict of the form
``{'total_seconds': ..., '<section>': ...}``; sections accumulate over
repeated use, so a resampling run reports the summed fit and predict time
of all its iterations.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Accumulating timer.

    Usage:
        timer = Timer()
        timer.start()
        for train, test in splits:
            with timer.section('fit'):
                obj = model.fit(frame.take(train))
            with timer.section('predict'):
                pred = model.predict(obj, X[test])
        timer.stop()
        timer.result()
        # {'total_seconds': 0.05, 'fit': 0.03, 'predict': 0.02}
    """

    def __init__(self):
        self._sections: dict[str, float] = {}
        self._start: float | None = None
        self._total: float | None = None

    def start(self) -> None:
        self._start = time.perf_counter()

    def stop(self) -> None:
        if self._start is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._start

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Add the time spent in the block to section ``name``."""
        begin = time.perf_counter()
        try:
            yield
        finally:
            self._sections[name] = (self._sections.get(name, 0.0)
                                    + time.perf_counter() - begin)

    def result(self) -> dict[str, float]:
        """Total and per-section seconds; RuntimeError before stop()."""
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._total, **self._sections}
