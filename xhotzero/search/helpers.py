# -*- coding: utf-8 -*-
"""
Helper for Tree search
"""
from typing import List, NamedTuple, Optional

MAXIMUM_FLOAT_VALUE = float('inf')


class KnownBounds(NamedTuple):
    min: float
    max: float


class MinMaxStats(object):
    """
    A class that holds the min-max values of the tree.
    """

    def __init__(self, known_bounds: Optional[KnownBounds] = None, value_delta_max: float = 0.0):
        self._known_bounds = known_bounds
        self.value_delta_max = value_delta_max
        self.clear()

    def clear(self):
        """
        Forget every observed value, keeping the known bounds.
        """
        self.maximum = self._known_bounds.max if self._known_bounds else -MAXIMUM_FLOAT_VALUE
        self.minimum = self._known_bounds.min if self._known_bounds else MAXIMUM_FLOAT_VALUE

    def update(self, value: float):
        """
        Update a border value.

        Parameters
        ----------
        value: float
            Node's value
        """
        self.maximum = max(self.maximum, value)
        self.minimum = min(self.minimum, value)

    def normalize(self, value: float) -> float:
        """
        Normalize the node's value.

        Parameters
        ----------
        value: float
            Node's value

        Returns
        -------
        float:
            Normalized node's value
        """
        delta = self.maximum - self.minimum
        if delta > 0:
            # ##: Normalize only when there are a maximum and minimum values.
            return (value - self.minimum) / max(delta, self.value_delta_max)
        return value


class MinMaxStatsList(object):
    """
    One normalizer per batch slot.
    """

    def __init__(self, num: int, value_delta_max: float = 0.0):
        self.stats_lst: List[MinMaxStats] = [MinMaxStats(value_delta_max=value_delta_max) for _ in range(num)]

    def set_delta(self, value_delta_max: float):
        """
        Set the smallest range used when normalizing.

        Parameters
        ----------
        value_delta_max: float
            Lower bound of the normalization range
        """
        for stats in self.stats_lst:
            stats.value_delta_max = value_delta_max

    def __getitem__(self, index: int) -> MinMaxStats:
        return self.stats_lst[index]

    def __len__(self) -> int:
        return len(self.stats_lst)
