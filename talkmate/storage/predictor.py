"""Access tracking, next-access prediction and prefetch.

The predictor is a plain moving average over inter-access intervals. Its
only consumer is the prefetcher, which treats predictions as hints: nothing
on the read/write path depends on them.
"""

import logging
from collections import deque
from typing import Callable, Optional

from .models import Prediction, now_ms

logger = logging.getLogger(__name__)


class AccessTracker:
    def __init__(self, history: int = 100) -> None:
        self.history = history
        self._accesses: dict[str, deque[int]] = {}

    def record(self, key: str, at_ms: Optional[int] = None) -> None:
        accesses = self._accesses.get(key)
        if accesses is None:
            # deque(maxlen) drops the oldest entry first
            accesses = self._accesses[key] = deque(maxlen=self.history)
        accesses.append(at_ms if at_ms is not None else now_ms())

    def accesses(self, key: str) -> list[int]:
        return list(self._accesses.get(key, ()))

    def items(self):
        return self._accesses.items()

    def forget_stale(self, cutoff_ms: int) -> int:
        """Drop keys whose most recent access is older than ``cutoff_ms``."""
        stale = [k for k, a in self._accesses.items() if not a or a[-1] < cutoff_ms]
        for key in stale:
            del self._accesses[key]
        return len(stale)

    def __contains__(self, key: str) -> bool:
        return key in self._accesses

    def __len__(self) -> int:
        return len(self._accesses)


def predict_next_access(
    accesses: list[int], min_accesses: int = 10, confidence_cap: float = 0.95
) -> Optional[Prediction]:
    if len(accesses) < min_accesses:
        return None
    intervals = [b - a for a, b in zip(accesses, accesses[1:])]
    mean_interval = sum(intervals) / len(intervals)
    return Prediction(
        predicted_access=accesses[-1] + mean_interval,
        confidence=min(len(intervals) / 100, confidence_cap),
    )


class Predictor:
    def __init__(
        self,
        tracker: AccessTracker,
        min_accesses: int = 10,
        confidence_cap: float = 0.95,
    ) -> None:
        self.tracker = tracker
        self.min_accesses = min_accesses
        self.confidence_cap = confidence_cap
        self.predictions: dict[str, Prediction] = {}

    def run(self) -> dict[str, Prediction]:
        """Recompute predictions for every key with enough history."""
        for key, accesses in list(self.tracker.items()):
            try:
                prediction = predict_next_access(
                    list(accesses), self.min_accesses, self.confidence_cap
                )
            except Exception:
                logger.exception("Prediction failed for %s", key)
                continue
            if prediction is not None:
                self.predictions[key] = prediction
        return self.predictions

    def forget_stale(self) -> int:
        stale = [k for k in self.predictions if k not in self.tracker]
        for key in stale:
            del self.predictions[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self.predictions)


class Prefetcher:
    def __init__(
        self,
        predictor: Predictor,
        loader: Callable[[str], object],
        window_ms: int = 5000,
        min_confidence: float = 0.7,
    ) -> None:
        self.predictor = predictor
        self.loader = loader
        self.window_ms = window_ms
        self.min_confidence = min_confidence

    def due(self, at_ms: Optional[int] = None) -> list[str]:
        now = at_ms if at_ms is not None else now_ms()
        return [
            key
            for key, p in self.predictor.predictions.items()
            if p.predicted_access - now < self.window_ms
            and p.confidence > self.min_confidence
        ]

    def run(self, at_ms: Optional[int] = None) -> list[str]:
        """Load every due key; returns the keys that loaded. Never raises."""
        loaded = []
        for key in self.due(at_ms):
            try:
                if self.loader(key) is not None:
                    loaded.append(key)
            except Exception as e:
                logger.debug("Prefetch of %s failed: %s", key, e)
        if loaded:
            logger.info("Prefetched %d record(s)", len(loaded))
        return loaded
