# progress.py
"""
Progress and Result Reporting for the Design Search

The search reports progress through any object with an update() method and hands
its final ranking to any object with an accept() method. ProgressTracker is the
console implementation built on tqdm.
"""

import logging
import time
from typing import List, Optional

from tqdm import tqdm

logger = logging.getLogger(__name__)


class ProgressSink:
    """Receives progress of a long-running search."""

    def update(self, current: float, minimum: float, maximum: float, label: str = ""):
        raise NotImplementedError


class ResultSink:
    """Receives the ranked list of candidates when a search finishes."""

    def accept(self, candidates: List):
        raise NotImplementedError


class NullProgress(ProgressSink):
    def update(self, current, minimum, maximum, label=""):
        pass


class ProgressTracker(ProgressSink):
    """
    Console progress bar for the design search.

    The bar position is the fraction of the way from minimum to maximum of the
    outermost sweep variable (the V/N factor).
    """

    def __init__(self, description: str = "Design search", resolution: int = 1000,
                 disable: Optional[bool] = None):
        """
        Args:
            description: Text shown in front of the bar
            resolution: Number of bar steps between minimum and maximum
            disable: Passed through to tqdm (None disables on non-TTY output)
        """
        self.resolution = resolution
        self.start_time = time.time()
        self.bar = tqdm(total=resolution, desc=description, unit="step", disable=disable)
        self.position = 0
        self.last_label = ""

    def update(self, current, minimum, maximum, label=""):
        if maximum > minimum:
            fraction = (current - minimum) / (maximum - minimum)
        else:
            fraction = 1.0
        position = int(round(min(max(fraction, 0.0), 1.0) * self.resolution))

        if position > self.position:
            self.bar.update(position - self.position)
            self.position = position
        if label and label != self.last_label:
            self.bar.set_postfix_str(label)
            self.last_label = label

    def close(self):
        self.bar.close()
        logger.info("Search finished in %.1f s", time.time() - self.start_time)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class ListResultSink(ResultSink):
    """Keeps the last list of candidates it was given."""

    def __init__(self):
        self.candidates = []

    def accept(self, candidates):
        self.candidates = list(candidates)
