# -*- coding: utf-8 -*-
"""
Codec between x-hot composite actions and the integer keys children are stored under.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence


class ActionEncoding(str, Enum):
    """
    Scheme used to fold a composite action into a single key.

    SUMMATION: Σ (action[i] + i * A) over resolved heads, clamped to [0, H * A).
        Keys enumerate the flattened H * A space; a vector resolving one head is
        recovered exactly, vectors resolving several heads may collide.
    MIXED_RADIX: Σ action[i] * A^i over all heads. Bijective over the A^H joint actions.
    """

    SUMMATION = 'summation'
    MIXED_RADIX = 'mixed_radix'


@dataclass(frozen=True)
class ActionEncoder:
    """
    Encode and decode composite actions for a fixed number of heads of fixed size.

    Attributes
    ----------
    num_action_heads : int
        Number of independently controlled heads (H).
    actions_per_head : int
        Size of the action set of each head (A).
    encoding : ActionEncoding
        Folding scheme.
    """

    num_action_heads: int = 1
    actions_per_head: int = 4
    encoding: ActionEncoding = ActionEncoding.SUMMATION

    def __post_init__(self):
        if self.num_action_heads < 1 or self.actions_per_head < 1:
            raise ValueError(
                f'Invalid action space: {self.num_action_heads} heads of {self.actions_per_head} actions'
            )

    @property
    def num_keys(self) -> int:
        """Number of distinct keys the scheme can produce."""
        if self.encoding is ActionEncoding.MIXED_RADIX:
            return self.actions_per_head**self.num_action_heads
        return self.actions_per_head * self.num_action_heads

    def sentinel(self) -> List[int]:
        """Composite action with every head unresolved."""
        return [-1] * self.num_action_heads

    def _in_range(self, action: int) -> bool:
        return 0 <= action < self.actions_per_head

    def is_valid(self, actions: Sequence[int]) -> bool:
        """
        Check that a composite action can be encoded.

        Parameters
        ----------
        actions: Sequence[int]
            One entry per head

        Returns
        -------
        bool
            True if ``encode`` returns a key
        """
        return self.encode(actions) >= 0

    def encode(self, actions: Sequence[int]) -> int:
        """
        Fold a composite action into a key.

        Parameters
        ----------
        actions: Sequence[int]
            One entry per head

        Returns
        -------
        int
            The key, or -1 when the vector is malformed
        """
        if len(actions) != self.num_action_heads:
            return -1

        if self.encoding is ActionEncoding.MIXED_RADIX:
            if not all(self._in_range(action) for action in actions):
                return -1
            key = 0
            for head, action in enumerate(actions):
                key += int(action) * self.actions_per_head**head
            return key

        # ##: Unresolved or out of range heads do not contribute.
        resolved = [(head, int(action)) for head, action in enumerate(actions) if self._in_range(action)]
        if not resolved:
            return -1
        key = sum(action + head * self.actions_per_head for head, action in resolved)
        return min(key, self.num_keys - 1)

    def decode(self, key: int) -> List[int]:
        """
        Unfold a key into a composite action.

        Parameters
        ----------
        key: int
            Key produced by ``encode``

        Returns
        -------
        list
            One entry per head
        """
        if not 0 <= key < self.num_keys:
            raise ValueError(f'Key {key} is outside [0, {self.num_keys})')

        if self.encoding is ActionEncoding.MIXED_RADIX:
            actions = []
            for _ in range(self.num_action_heads):
                key, action = divmod(key, self.actions_per_head)
                actions.append(action)
            return actions

        actions = self.sentinel()
        head, action = divmod(key, self.actions_per_head)
        actions[head] = action
        return actions
