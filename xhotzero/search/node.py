# -*- coding: utf-8 -*-
"""
Component of a Monte Carlos Tree.

Every tree owns a ``NodeArena``: nodes are appended to it on expansion and refer to
their children by index into that arena.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

import numpy as np
from numpy import ndarray

from xhotzero.search.encoding import ActionEncoder


class NodeArena:
    """
    Flat storage for the nodes of one search tree.

    Parameters
    ----------
    encoder: ActionEncoder
        Codec shared by every node of the tree
    """

    def __init__(self, encoder: Optional[ActionEncoder] = None):
        self.encoder = encoder if encoder is not None else ActionEncoder()
        self._nodes: List[Node] = []

    def allocate(self, prior: float, legal_actions: Optional[Sequence[int]] = None) -> Node:
        """
        Create a node owned by this arena.

        Parameters
        ----------
        prior: float
            Prior probability given by the parent's policy
        legal_actions: Sequence[int], optional
            Legal actions, discovered at expansion when empty

        Returns
        -------
        Node
            The new node
        """
        legal_actions = list(legal_actions) if legal_actions else []
        if len(set(legal_actions)) != len(legal_actions):
            raise ValueError(f'Duplicate legal actions in {legal_actions}')

        node = Node(
            prior=prior,
            legal_actions=legal_actions,
            best_action=self.encoder.sentinel(),
            arena=self,
            index=len(self._nodes),
        )
        self._nodes.append(node)
        return node

    def __getitem__(self, index: int) -> Node:
        return self._nodes[index]

    def __len__(self) -> int:
        return len(self._nodes)


@dataclass(kw_only=True, eq=False)
class Node:
    """
    A Node in the Monte Carlos Tree Search.

    Attributes
    ----------
    prior : float
        Probability given by the parent's policy, optionally blended with noise.
    legal_actions : list[int]
        Keys of the flattened action space that are valid from this node.
    visit_count : int
        Number of backpropagations through this node.
    value_sum : float
        Sum of the backpropagated values.
    to_play : int
        Player who acted to reach this node.
    value_prefix : float
        Cumulative discounted reward predicted up to this node.
    parent_value_prefix : float
        Copy of the parent's value prefix, set before the node joins a search path.
    is_reset : int
        1 when the value prefix chain restarts below this node.
    best_action : list[int]
        Composite action selected here during the last traversal.
    current_latent_state_index : int
        Search depth of this node's hidden state in the latent store.
    batch_index : int
        Batch slot of this node's hidden state in the latent store.
    children : dict[int, int]
        Arena index of each child, keyed by encoded action.
    """

    prior: float
    legal_actions: List[int] = field(default_factory=list)
    visit_count: int = 0
    value_sum: float = 0.0
    to_play: int = 0
    value_prefix: float = 0.0
    parent_value_prefix: float = 0.0
    is_reset: int = 0
    best_action: List[int] = field(default_factory=lambda: [-1])
    current_latent_state_index: int = -1
    batch_index: int = -1
    children: dict[int, int] = field(default_factory=dict)
    arena: NodeArena = field(repr=False)
    index: int = 0

    def expanded(self) -> bool:
        """
        It's a leaf or not.

        Returns
        -------
        bool
            True if expanded
            False else
        """
        return len(self.children) > 0

    def value(self) -> float:
        """
        Compute the value of the node.

        Returns
        -------
        float
            Value of the node.
        """
        if self.visit_count == 0:
            return 0.0
        return self.value_sum / self.visit_count

    def check_policy(self, policy_logits: Sequence[float]) -> ndarray:
        """
        Check that the policy logits can expand this node, without touching it.

        Parameters
        ----------
        policy_logits: Sequence[float]
            Logits over the flattened action space

        Returns
        -------
        ndarray
            Logits as a float array
        """
        logits = np.asarray(policy_logits, dtype=np.float64)
        num_keys = self.arena.encoder.num_keys
        if logits.size != num_keys:
            raise ValueError(f'Expected {num_keys} policy logits, got {logits.size}')
        if len(set(self.legal_actions)) != len(self.legal_actions):
            raise ValueError(f'Duplicate legal actions in {self.legal_actions}')
        if self.legal_actions and (min(self.legal_actions) < 0 or max(self.legal_actions) >= num_keys):
            raise ValueError(f'Legal actions {self.legal_actions} exceed the {num_keys} action keys')
        return logits

    def num_children_after_expansion(self) -> int:
        """Number of children an expansion creates."""
        return len(self.legal_actions) if self.legal_actions else self.arena.encoder.num_keys

    def expand(
        self,
        to_play: int,
        current_latent_state_index: int,
        batch_index: int,
        value_prefix: float,
        policy_logits: Sequence[float],
    ):
        """
        Expand a node using the value prefix and policy prediction obtained from the neural network.

        Parameters
        ----------
        to_play: int
            Player to play at this node
        current_latent_state_index: int
            Search depth of the hidden state
        batch_index: int
            Batch slot of the hidden state
        value_prefix: float
            Predicted value prefix
        policy_logits: Sequence[float]
            Logits over the flattened action space
        """
        assert not self.expanded(), 'A node can only be expanded once'
        logits = self.check_policy(policy_logits)

        self.to_play = to_play
        self.current_latent_state_index = current_latent_state_index
        self.batch_index = batch_index
        self.value_prefix = value_prefix

        if not self.legal_actions:
            self.legal_actions = list(range(logits.size))
        legal = np.asarray(self.legal_actions)

        # ##: Softmax restricted to the legal actions.
        policy = np.exp(logits[legal] - logits[legal].max())
        priors = policy / policy.sum()

        for action, prior in zip(self.legal_actions, priors):
            self.children[action] = self.arena.allocate(float(prior)).index

    def add_exploration_noise(self, exploration_fraction: float, noises: Sequence[float]):
        """
        Blend noise into the prior of each legal child.

        Parameters
        ----------
        exploration_fraction: float
            Weight of the noise
        noises: Sequence[float]
            One noise value per legal action, in legal action order
        """
        if len(noises) != len(self.legal_actions):
            raise ValueError(f'Expected {len(self.legal_actions)} noise values, got {len(noises)}')

        for action, noise in zip(self.legal_actions, noises):
            child = self.get_child(action)
            child.prior = child.prior * (1 - exploration_fraction) + noise * exploration_fraction

    def compute_mean_q(self, is_root: bool, parent_q: float, discount: float) -> float:
        """
        Average of the one step bootstrapped values of the visited children.

        Parameters
        ----------
        is_root: bool
            Whether this node is a root
        parent_q: float
            Mean Q of the parent, folded in as one extra sample outside the root
        discount: float
            Reward discount

        Returns
        -------
        float
            Mean Q used for unvisited children
        """
        total_unsigned_q = 0.0
        total_visits = 0
        for action in self.legal_actions:
            child = self.get_child(action)
            if child is not None and child.visit_count > 0:
                true_reward = child.value_prefix if self.is_reset == 1 else child.value_prefix - self.value_prefix
                total_unsigned_q += true_reward + discount * child.value()
                total_visits += 1

        if is_root and total_visits > 0:
            return total_unsigned_q / total_visits
        return (parent_q + total_unsigned_q) / (total_visits + 1)

    def get_child(self, action: Union[int, Sequence[int]]) -> Optional[Node]:
        """
        Child reached by an encoded key or by a composite action.

        Parameters
        ----------
        action: int or Sequence[int]
            Encoded key, or one entry per head

        Returns
        -------
        Node or None
            The child, None if absent
        """
        key = action if isinstance(action, (int, np.integer)) else self.arena.encoder.encode(action)
        index = self.children.get(int(key))
        if index is None:
            return None
        return self.arena[index]

    def get_trajectory(self) -> List[List[int]]:
        """
        Follow the last selected actions from this node.

        Returns
        -------
        list
            Composite actions of the current best trajectory
        """
        trajectory = []
        node = self
        while node is not None and node.best_action[0] >= 0:
            trajectory.append(list(node.best_action))
            node = node.get_child(node.best_action[0])
        return trajectory

    def get_children_distribution(self) -> List[int]:
        """
        Visit counts of the children.

        Returns
        -------
        list
            Visit count of each legal child, in legal action order
        """
        if not self.expanded():
            return []
        return [self.get_child(action).visit_count for action in self.legal_actions]
