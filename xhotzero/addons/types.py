# -*- coding: utf-8 -*-
"""
New types for the search.
"""
from typing import Any, List, NamedTuple, Optional, Sequence

from numpy import ndarray

# ##: One sub-action per action head, -1 for an unresolved head.
CompositeAction = List[int]


class NetworkOutput(NamedTuple):
    """
    The network's batched output for one round of leaves.
    """

    value: Sequence[float]
    value_prefix: Sequence[float]
    policy_logits: Sequence[Sequence[float]]
    latent_state: ndarray
    is_reset: Optional[Sequence[int]] = None


class SearchStats(NamedTuple):
    """
    What a planning call hands back, one entry per batch slot.
    """

    distributions: List[List[int]]
    values: List[float]
    trajectories: List[List[CompositeAction]]


# ##: Whatever the network stores as a hidden state.
LatentState = Any
