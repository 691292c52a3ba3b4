"""Sampling and extrapolation for metadata of large clusters."""

import math
from typing import TypeVar

T = TypeVar("T")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


class SamplingStrategy:
    """Exact below a threshold, sampled and extrapolated above it.

    Fetching per-topic metadata costs one request per topic, so for clusters
    with more than ``sample_size`` topics only the first ``sample_size`` are
    fetched and the totals are scaled up to the full topic count.
    """

    def __init__(self, sample_size: int) -> None:
        if sample_size < 1:
            raise ValueError(f"Sample size must be at least 1, got {sample_size}")
        self.sample_size = sample_size

    def select(self, items: list[T]) -> list[T]:
        """Return the leading sample of ``items``."""
        return items[: self.sample_size]

    def is_exact(self, total: int) -> bool:
        """Whether a population of ``total`` items is covered without sampling."""
        return total <= self.sample_size

    def extrapolate(self, sample_total: int, sample_count: int, total: int) -> int:
        """Estimate a population total from the sum over a sample.

        Args:
            sample_total: Sum of the measured quantity over the sample
            sample_count: Number of items actually measured
            total: Number of items in the population

        Returns:
            ``sample_total`` when the sample is the whole population, else the
            sample average times ``total`` rounded half-up. Never negative.
        """
        if sample_count <= 0 or total <= 0:
            return 0
        if sample_count >= total:
            return max(0, sample_total)
        return max(0, round_half_up(sample_total / sample_count * total))

    def scale(self, value: int, total: int, sample_count: int) -> int:
        """Scale a per-sample counter by ``total / sample_count``."""
        if sample_count <= 0 or sample_count >= total:
            return max(0, value)
        return max(0, round_half_up(value * (total / sample_count)))

    def __repr__(self) -> str:
        """Return string representation."""
        return f"SamplingStrategy(sample_size={self.sample_size})"
