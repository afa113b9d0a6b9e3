# -*- coding: utf-8 -*-
"""
Set of config for the search.
"""
from dataclasses import dataclass
from typing import Optional

from xhotzero.search.encoding import ActionEncoder, ActionEncoding


@dataclass
class UpperConfidenceBounds:
    """
    Configuration for compute UBC.
    """

    discount: float
    pb_c_base: float
    pb_c_init: float

    def __post_init__(self):
        if not 0.0 < self.discount <= 1.0:
            raise ValueError(f'Discount must lie in (0, 1], got {self.discount}')
        if self.pb_c_base <= 0:
            raise ValueError(f'pb_c_base must be positive, got {self.pb_c_base}')


@dataclass
class NoiseConfig:
    """
    Configuration for adding noise.
    """

    root_dirichlet_alpha: float
    root_dirichlet_adaptive: bool
    root_exploration_fraction: float

    def __post_init__(self):
        if self.root_dirichlet_alpha <= 0:
            raise ValueError(f'Dirichlet alpha must be positive, got {self.root_dirichlet_alpha}')
        if not 0.0 <= self.root_exploration_fraction <= 1.0:
            raise ValueError(f'Exploration fraction must lie in [0, 1], got {self.root_exploration_fraction}')


@dataclass
class ActionSpaceConfig:
    """
    Configuration of the composite action space.
    """

    num_action_heads: int = 1
    actions_per_head: int = 4
    encoding: ActionEncoding = ActionEncoding.SUMMATION

    def __post_init__(self):
        if self.num_action_heads < 1:
            raise ValueError(f'At least one action head is required, got {self.num_action_heads}')
        if self.actions_per_head < 1:
            raise ValueError(f'At least one action per head is required, got {self.actions_per_head}')
        self.encoding = ActionEncoding(self.encoding)

    def build_encoder(self) -> ActionEncoder:
        """
        Build the codec matching this action space.

        Returns
        -------
        ActionEncoder
            Composite action codec
        """
        return ActionEncoder(
            num_action_heads=self.num_action_heads, actions_per_head=self.actions_per_head, encoding=self.encoding
        )


@dataclass
class MonteCarlosConfig:
    """
    Configuration for Monte Carlos Tree Search.
    """

    bounds: UpperConfidenceBounds
    num_simulations: int
    action_space: ActionSpaceConfig
    noise: Optional[NoiseConfig] = None
    lstm_horizon_len: Optional[int] = None
    value_delta_max: float = 0.0

    def __post_init__(self):
        if self.num_simulations < 0:
            raise ValueError(f'Number of simulations must be non-negative, got {self.num_simulations}')
        if self.lstm_horizon_len is not None and self.lstm_horizon_len < 1:
            raise ValueError(f'LSTM horizon must be positive, got {self.lstm_horizon_len}')
        if self.value_delta_max < 0:
            raise ValueError(f'value_delta_max must be non-negative, got {self.value_delta_max}')
