# -*- coding: utf-8 -*-
"""
Batch containers: the roots of the parallel searches and the per round search results.
"""
import logging
from typing import List, Optional, Sequence

from xhotzero.search.encoding import ActionEncoder
from xhotzero.search.node import Node, NodeArena

# ##>: Module logger.
_logger = logging.getLogger(__name__)


def _check_batch(name: str, values: Sequence, expected: int):
    if len(values) != expected:
        raise ValueError(f'Expected {expected} entries for {name}, got {len(values)}')


class Roots:
    """
    One independent search tree per batch slot.

    Parameters
    ----------
    root_num: int
        Number of batch slots
    legal_actions_list: Sequence[Sequence[int]]
        Legal actions of each root; an empty entry makes every action legal
    encoder: ActionEncoder, optional
        Composite action codec shared by all trees
    """

    def __init__(
        self, root_num: int, legal_actions_list: Sequence[Sequence[int]], encoder: Optional[ActionEncoder] = None
    ):
        _check_batch('legal_actions_list', legal_actions_list, root_num)
        self.num = root_num
        self.encoder = encoder if encoder is not None else ActionEncoder()
        self.legal_actions_list = [list(legal_actions) for legal_actions in legal_actions_list]
        self.roots: List[Node] = [
            NodeArena(self.encoder).allocate(0.0, legal_actions) for legal_actions in self.legal_actions_list
        ]
        _logger.debug('Created %d roots', root_num)

    def _check_inputs(
        self, value_prefixes: Sequence[float], policies: Sequence[Sequence[float]], to_play_batch: Sequence[int]
    ):
        _check_batch('value_prefixes', value_prefixes, self.num)
        _check_batch('policies', policies, self.num)
        _check_batch('to_play_batch', to_play_batch, self.num)
        for root, policy in zip(self.roots, policies):
            root.check_policy(policy)

    def _expand(self, value_prefixes: Sequence[float], policies: Sequence[Sequence[float]], to_play_batch: Sequence[int]):
        for index, root in enumerate(self.roots):
            root.expand(to_play_batch[index], 0, index, value_prefixes[index], policies[index])

    def prepare(
        self,
        root_noise_weight: float,
        noises: Sequence[Sequence[float]],
        value_prefixes: Sequence[float],
        policies: Sequence[Sequence[float]],
        to_play_batch: Sequence[int],
    ):
        """
        Expand the roots and add noises.

        Parameters
        ----------
        root_noise_weight: float
            Exploration fraction of the roots
        noises: Sequence[Sequence[float]]
            Noise of each root, one value per legal action
        value_prefixes: Sequence[float]
            Value prefix of each root
        policies: Sequence[Sequence[float]]
            Policy logits of each root
        to_play_batch: Sequence[int]
            Player of each root
        """
        # ##: Every input is checked before the first root is touched.
        self._check_inputs(value_prefixes, policies, to_play_batch)
        _check_batch('noises', noises, self.num)
        for index, (root, noise) in enumerate(zip(self.roots, noises)):
            if len(noise) != root.num_children_after_expansion():
                raise ValueError(
                    f'Root {index} expects {root.num_children_after_expansion()} noise values, got {len(noise)}'
                )

        self._expand(value_prefixes, policies, to_play_batch)
        for root, noise in zip(self.roots, noises):
            root.add_exploration_noise(root_noise_weight, noise)
            root.visit_count += 1

    def prepare_no_noise(
        self, value_prefixes: Sequence[float], policies: Sequence[Sequence[float]], to_play_batch: Sequence[int]
    ):
        """
        Expand the roots without noise.

        Parameters
        ----------
        value_prefixes: Sequence[float]
            Value prefix of each root
        policies: Sequence[Sequence[float]]
            Policy logits of each root
        to_play_batch: Sequence[int]
            Player of each root
        """
        self._check_inputs(value_prefixes, policies, to_play_batch)
        self._expand(value_prefixes, policies, to_play_batch)
        for root in self.roots:
            root.visit_count += 1

    def clear(self):
        """Drop every tree."""
        self.roots.clear()
        self.num = 0

    def get_trajectories(self) -> List[List[List[int]]]:
        """Current best trajectory of each root."""
        return [root.get_trajectory() for root in self.roots]

    def get_distributions(self) -> List[List[int]]:
        """Visit counts of the children of each root."""
        return [root.get_children_distribution() for root in self.roots]

    def get_values(self) -> List[float]:
        """Estimated value of each root."""
        return [root.value() for root in self.roots]


class SearchResults:
    """
    Scratch state of one traversal round, one entry per batch slot.

    Parameters
    ----------
    num: int
        Number of batch slots
    """

    def __init__(self, num: int = 0):
        self.num = num
        self.reset()

    def reset(self):
        """Clear the entries before a new round."""
        self.search_paths: List[List[Node]] = [[] for _ in range(self.num)]
        self.latent_state_index_in_search_path: List[int] = [-1] * self.num
        self.latent_state_index_in_batch: List[int] = [-1] * self.num
        self.last_actions: List[List[int]] = [[] for _ in range(self.num)]
        self.search_lens: List[int] = [0] * self.num
        self.virtual_to_play_batch: List[int] = [0] * self.num
        self.nodes: List[Optional[Node]] = [None] * self.num
