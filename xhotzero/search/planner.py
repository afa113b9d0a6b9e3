# -*- coding: utf-8 -*-
"""
Planning call: run a fixed budget of batched simulations against an external network.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol, Sequence

import numpy as np
from numpy import ndarray
from numpy.random import Generator
from tqdm import tqdm

from xhotzero.addons.types import NetworkOutput, SearchStats
from xhotzero.search.helpers import MinMaxStatsList
from xhotzero.search.mcts import GENERATOR, batch_backpropagate, batch_traverse
from xhotzero.search.roots import Roots, SearchResults

if TYPE_CHECKING:
    from xhotzero.addons.config import MonteCarlosConfig, NoiseConfig

# ##>: Module logger.
_logger = logging.getLogger(__name__)


class Network(Protocol):
    """
    Latent model queried once per round of simulations.
    """

    def recurrent_inference(self, latent_states: ndarray, last_actions: ndarray) -> NetworkOutput:
        """
        Advance each latent state by its action and predict from the resulting state.

        Parameters
        ----------
        latent_states: ndarray
            One hidden state per batch slot
        last_actions: ndarray
            One composite action per batch slot

        Returns
        -------
        NetworkOutput
            Batched predictions and the advanced hidden states
        """


def _sample_noises(config: NoiseConfig, roots: Roots, rng: Generator) -> List[ndarray]:
    noises = []
    for root in roots.roots:
        num_actions = len(root.legal_actions)
        dir_alpha = config.root_dirichlet_alpha
        if config.root_dirichlet_adaptive:
            dir_alpha = 1.0 / np.sqrt(num_actions)
        noises.append(rng.dirichlet([dir_alpha] * num_actions))
    return noises


def run_mcts(
    config: MonteCarlosConfig,
    roots: Roots,
    network: Network,
    latent_state_roots: ndarray,
    value_prefix_roots: Sequence[float],
    policy_logits_roots: Sequence[Sequence[float]],
    to_play_batch: Sequence[int],
    rng: Optional[Generator] = None,
    show_progress: bool = False,
) -> SearchStats:
    """
    To decide on an action, run N simulations, always starting at the roots of the search trees and
    traversing the trees according to the UCB formula until they reach a leaf node.

    Parameters
    ----------
    config: MonteCarlosConfig
        Search configuration
    roots: Roots
        Unprepared roots, one per batch slot
    network: Network
        Latent model
    latent_state_roots: ndarray
        Hidden state of each root
    value_prefix_roots: Sequence[float]
        Value prefix of each root
    policy_logits_roots: Sequence[Sequence[float]]
        Policy logits of each root
    to_play_batch: Sequence[int]
        Player to play at each root, -1 without opponent
    rng: Generator, optional
        Source of randomness for noise and tie breaking
    show_progress: bool
        Display a progress bar over the simulations

    Returns
    -------
    SearchStats
        Visit distributions, values and best trajectories of the roots
    """
    rng = rng if rng is not None else GENERATOR
    bounds = config.bounds

    encoder = config.action_space.build_encoder()
    if roots.encoder != encoder:
        raise ValueError(f'Roots encode actions with {roots.encoder}, the search is configured for {encoder}')

    # ##: The roots are expanded first so that legal actions are known before sampling noise.
    roots.prepare_no_noise(value_prefix_roots, policy_logits_roots, to_play_batch)
    if config.noise is not None:
        for root, noise in zip(roots.roots, _sample_noises(config.noise, roots, rng)):
            root.add_exploration_noise(config.noise.root_exploration_fraction, noise)

    min_max_stats_lst = MinMaxStatsList(roots.num, config.value_delta_max)
    results = SearchResults(roots.num)
    latent_states_in_search_path = [np.asarray(latent_state_roots)]

    _logger.debug('Running %d simulations over %d roots', config.num_simulations, roots.num)
    progress_bar = (
        tqdm(range(config.num_simulations), desc='Search', unit='sim', leave=False) if show_progress else None
    )
    simulations = progress_bar if progress_bar is not None else range(config.num_simulations)

    for simulation_index in simulations:
        if roots.num == 0:
            break
        index_in_search_path, index_in_batch, last_actions, virtual_to_play_batch = batch_traverse(
            roots, bounds.pb_c_base, bounds.pb_c_init, bounds.discount, min_max_stats_lst, results, to_play_batch, rng
        )

        latent_states = np.stack(
            [latent_states_in_search_path[ix][iy] for ix, iy in zip(index_in_search_path, index_in_batch)]
        )
        output = network.recurrent_inference(latent_states, np.asarray(last_actions))
        latent_states_in_search_path.append(np.asarray(output.latent_state))

        if output.is_reset is not None:
            is_reset_list = [int(flag) for flag in output.is_reset]
        elif config.lstm_horizon_len is not None:
            # ##: The reward LSTM restarts every horizon steps.
            is_reset_list = [int(length % config.lstm_horizon_len == 0) for length in results.search_lens]
        else:
            is_reset_list = [0] * roots.num

        batch_backpropagate(
            simulation_index + 1,
            bounds.discount,
            output.value_prefix,
            output.value,
            output.policy_logits,
            min_max_stats_lst,
            results,
            is_reset_list,
            virtual_to_play_batch,
        )

    return SearchStats(
        distributions=roots.get_distributions(), values=roots.get_values(), trajectories=roots.get_trajectories()
    )


def get_policy_from_visits(
    distribution: Sequence[int], legal_actions: Sequence[int], temperature: float = 1.0
) -> Dict[int, float]:
    """
    Compute action probabilities from visit counts.

    Parameters
    ----------
    distribution: Sequence[int]
        Visit count of each legal child
    legal_actions: Sequence[int]
        Legal actions, in the order of the distribution
    temperature: float
        0 for the most visited action, higher values flatten the policy

    Returns
    -------
    dict
        Probability of each legal action
    """
    if len(distribution) != len(legal_actions):
        raise ValueError(f'{len(distribution)} visit counts for {len(legal_actions)} legal actions')
    if not legal_actions:
        return {}

    visits = np.asarray(distribution, dtype=np.float64)
    if temperature == 0.0:
        best = int(np.argmax(visits))
        return {action: 1.0 if index == best else 0.0 for index, action in enumerate(legal_actions)}

    if visits.sum() == 0:
        return {action: 1.0 / len(legal_actions) for action in legal_actions}

    scaled = visits ** (1.0 / temperature)
    probs = scaled / scaled.sum()
    return {action: float(prob) for action, prob in zip(legal_actions, probs)}


def select_action(
    distribution: Sequence[int],
    legal_actions: Sequence[int],
    temperature: float = 0.0,
    rng: Optional[Generator] = None,
) -> int:
    """
    Select an action from the visit counts of a root.

    Parameters
    ----------
    distribution: Sequence[int]
        Visit count of each legal child
    legal_actions: Sequence[int]
        Legal actions, in the order of the distribution
    temperature: float
        0 for the most visited action
    rng: Generator, optional
        Source of randomness when sampling

    Returns
    -------
    int
        Selected action key
    """
    if not legal_actions:
        raise ValueError('Cannot select action from root with no children')

    policy = get_policy_from_visits(distribution, legal_actions, temperature)
    actions = list(policy.keys())
    if temperature == 0.0:
        return max(actions, key=lambda action: policy[action])

    rng = rng if rng is not None else GENERATOR
    return int(rng.choice(actions, p=[policy[action] for action in actions]))
