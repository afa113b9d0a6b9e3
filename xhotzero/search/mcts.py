# -*- coding: utf-8 -*-
"""
Core Monte Carlo Tree Search algorithm.

A round of search descends every tree of a ``Roots`` batch to a leaf (``batch_traverse``), lets the
caller evaluate the leaves with the network, then expands the leaves and propagates the values back
to the roots (``batch_backpropagate``).
"""
from math import log, sqrt
from typing import List, Optional, Sequence, Tuple

import numpy as np
from numpy.random import PCG64DXSM, Generator, default_rng

from xhotzero.search.helpers import MinMaxStats, MinMaxStatsList
from xhotzero.search.node import Node
from xhotzero.search.roots import Roots, SearchResults

GENERATOR = default_rng(PCG64DXSM())

# ##: Scores closer than this to the best one are ties.
TIE_EPSILON = 1e-6


def infer_players(virtual_to_play_batch: Sequence[int]) -> int:
    """
    Number of players in play: -1 everywhere means no opponent.

    Parameters
    ----------
    virtual_to_play_batch: Sequence[int]
        Player to play at each root

    Returns
    -------
    int
        1 or 2
    """
    if len(virtual_to_play_batch) == 0:
        raise ValueError('Cannot infer the players of an empty batch')
    return 1 if max(virtual_to_play_batch) == -1 else 2


def ucb_score(
    child: Node,
    min_max_stats: MinMaxStats,
    parent_mean_q: float,
    is_reset: int,
    total_children_visit_counts: float,
    parent_value_prefix: float,
    pb_c_base: float,
    pb_c_init: float,
    discount: float,
    players: int,
) -> float:
    """
    The score for a node is based on its value, plus an exploration bonus based on the prior.

    Parameters
    ----------
    child: Node
        Scored child
    min_max_stats: MinMaxStats
        Normalizer of the tree
    parent_mean_q: float
        Value given to an unvisited child
    is_reset: int
        Reset flag of the parent
    total_children_visit_counts: float
        Visits of the parent's children
    parent_value_prefix: float
        Value prefix of the parent
    pb_c_base: float
        Exploration base constant
    pb_c_init: float
        Exploration init constant
    discount: float
        Reward discount
    players: int
        1 or 2

    Returns
    -------
    float
        UCB score
    """
    pb_c = log((total_children_visit_counts + pb_c_base + 1) / pb_c_base) + pb_c_init
    pb_c *= sqrt(total_children_visit_counts) / (child.visit_count + 1)
    prior_score = pb_c * child.prior

    if child.visit_count == 0:
        value_score = parent_mean_q
    else:
        true_reward = child.value_prefix if is_reset == 1 else child.value_prefix - parent_value_prefix
        if players == 1:
            value_score = true_reward + discount * child.value()
        else:
            value_score = true_reward + discount * (-child.value())

    value_score = min(max(min_max_stats.normalize(value_score), 0.0), 1.0)
    return prior_score + value_score


def select_child(
    node: Node,
    min_max_stats: MinMaxStats,
    pb_c_base: float,
    pb_c_init: float,
    discount: float,
    mean_q: float,
    players: int,
    rng: Optional[Generator] = None,
) -> List[int]:
    """
    Select the child with the highest UCB score, ties broken uniformly at random.

    Parameters
    ----------
    node: Node
        Expanded node
    min_max_stats: MinMaxStats
        Normalizer of the tree
    pb_c_base: float
        Exploration base constant
    pb_c_init: float
        Exploration init constant
    discount: float
        Reward discount
    mean_q: float
        Mean Q of the node
    players: int
        1 or 2
    rng: Generator, optional
        Source of randomness for tie breaking

    Returns
    -------
    list
        Composite action whose first head holds the selected key, -1 elsewhere
    """
    actions = node.arena.encoder.sentinel()
    if not node.legal_actions:
        return actions

    rng = rng if rng is not None else GENERATOR
    scores = np.array(
        [
            ucb_score(
                node.get_child(action),
                min_max_stats,
                mean_q,
                node.is_reset,
                node.visit_count - 1,
                node.value_prefix,
                pb_c_base,
                pb_c_init,
                discount,
                players,
            )
            for action in node.legal_actions
        ]
    )
    tied = np.flatnonzero(scores >= scores.max() - TIE_EPSILON)
    actions[0] = node.legal_actions[int(rng.choice(tied))]
    return actions


def backpropagate(search_path: List[Node], min_max_stats: MinMaxStats, to_play: int, value: float, discount: float):
    """
    At the end of a simulation, propagate the evaluation all the way up the tree to the root.

    Parameters
    ----------
    search_path: List[Node]
        Nodes from the root to the leaf
    min_max_stats: MinMaxStats
        Normalizer of the tree
    to_play: int
        -1 without opponent, else the player (1 or 2) to play at the leaf
    value: float
        Network value of the leaf
    discount: float
        Reward discount
    """
    if to_play not in (-1, 1, 2):
        raise ValueError(f'to_play must be -1, 1 or 2, got {to_play}')

    bootstrap_value = value
    for index in range(len(search_path) - 1, -1, -1):
        node = search_path[index]
        if to_play == -1 or node.to_play == to_play:
            node.value_sum += bootstrap_value
        else:
            node.value_sum -= bootstrap_value
        node.visit_count += 1

        parent_value_prefix, is_reset = 0.0, 0
        if index >= 1:
            parent = search_path[index - 1]
            parent_value_prefix, is_reset = parent.value_prefix, parent.is_reset

        # ##: The normalizer sees the plain difference, the bootstrap the reset one.
        true_reward = node.value_prefix - parent_value_prefix
        min_max_stats.update(true_reward + discount * node.value())
        if is_reset == 1:
            true_reward = node.value_prefix

        if to_play != -1 and node.to_play == to_play:
            bootstrap_value = -true_reward + discount * bootstrap_value
        else:
            bootstrap_value = true_reward + discount * bootstrap_value


def batch_backpropagate(
    current_latent_state_index: int,
    discount: float,
    value_prefixes: Sequence[float],
    values: Sequence[float],
    policies: Sequence[Sequence[float]],
    min_max_stats_lst: MinMaxStatsList,
    results: SearchResults,
    is_reset_list: Sequence[int],
    to_play_batch: Sequence[int],
):
    """
    Expand the leaves reached by the last traversal and back them up.

    Parameters
    ----------
    current_latent_state_index: int
        Depth index of the leaves' hidden states in the latent store
    discount: float
        Reward discount
    value_prefixes: Sequence[float]
        Value prefix of each leaf
    values: Sequence[float]
        Value of each leaf
    policies: Sequence[Sequence[float]]
        Policy logits of each leaf
    min_max_stats_lst: MinMaxStatsList
        Normalizer of each tree
    results: SearchResults
        Output of the last traversal
    is_reset_list: Sequence[int]
        Reset flag of each leaf
    to_play_batch: Sequence[int]
        Player to play at each leaf
    """
    for name, batch in (
        ('value_prefixes', value_prefixes),
        ('values', values),
        ('policies', policies),
        ('is_reset_list', is_reset_list),
        ('to_play_batch', to_play_batch),
    ):
        if len(batch) != results.num:
            raise ValueError(f'Expected {results.num} entries for {name}, got {len(batch)}')
    # ##: No leaf is expanded unless every slot can be.
    for leaf, policy, to_play in zip(results.nodes, policies, to_play_batch):
        leaf.check_policy(policy)
        if to_play not in (-1, 1, 2):
            raise ValueError(f'to_play must be -1, 1 or 2, got {to_play}')

    for index in range(results.num):
        leaf = results.nodes[index]
        leaf.expand(to_play_batch[index], current_latent_state_index, index, value_prefixes[index], policies[index])
        leaf.is_reset = int(is_reset_list[index])
        backpropagate(
            results.search_paths[index], min_max_stats_lst[index], to_play_batch[index], values[index], discount
        )


def batch_traverse(
    roots: Roots,
    pb_c_base: float,
    pb_c_init: float,
    discount: float,
    min_max_stats_lst: MinMaxStatsList,
    results: SearchResults,
    virtual_to_play_batch: Sequence[int],
    rng: Optional[Generator] = None,
) -> Tuple[List[int], List[int], List[List[int]], List[int]]:
    """
    Descend every tree from its root to a leaf.

    Parameters
    ----------
    roots: Roots
        Prepared roots
    pb_c_base: float
        Exploration base constant
    pb_c_init: float
        Exploration init constant
    discount: float
        Reward discount
    min_max_stats_lst: MinMaxStatsList
        Normalizer of each tree
    results: SearchResults
        Filled with this round's paths and leaves
    virtual_to_play_batch: Sequence[int]
        Player to play at each root; left untouched
    rng: Generator, optional
        Source of randomness for tie breaking

    Returns
    -------
    tuple
        Depth and batch indices of each leaf's parent, last actions and players to play at the leaves
    """
    if roots.num != results.num:
        raise ValueError(f'{roots.num} roots cannot fill {results.num} search results')
    if len(virtual_to_play_batch) != results.num:
        raise ValueError(f'Expected {results.num} players, got {len(virtual_to_play_batch)}')

    rng = rng if rng is not None else GENERATOR
    results.reset()
    if results.num == 0:
        return [], [], [], []
    players = infer_players(virtual_to_play_batch)

    for index in range(results.num):
        node = roots.roots[index]
        if not node.expanded():
            raise ValueError(f'Root {index} must be prepared before traversal')

        virtual_to_play = virtual_to_play_batch[index]
        if players > 1 and virtual_to_play not in (1, 2):
            raise ValueError(f'Two player search expects players 1 or 2, got {virtual_to_play}')

        is_root, parent_q, search_len = True, 0.0, 0
        search_path = results.search_paths[index]
        search_path.append(node)

        while node.expanded():
            mean_q = node.compute_mean_q(is_root, parent_q, discount)
            is_root, parent_q = False, mean_q

            actions = select_child(
                node, min_max_stats_lst[index], pb_c_base, pb_c_init, discount, mean_q, players, rng
            )
            if players > 1:
                virtual_to_play = 2 if virtual_to_play == 1 else 1

            node.best_action = actions
            child = node.get_child(actions[0])
            assert child is not None, 'Selected an action without child'
            child.parent_value_prefix = node.value_prefix
            node = child

            results.last_actions[index] = list(actions)
            search_path.append(node)
            search_len += 1

        parent = search_path[-2]
        results.latent_state_index_in_search_path[index] = parent.current_latent_state_index
        results.latent_state_index_in_batch[index] = parent.batch_index
        results.search_lens[index] = search_len
        results.nodes[index] = node
        results.virtual_to_play_batch[index] = virtual_to_play

    return (
        results.latent_state_index_in_search_path,
        results.latent_state_index_in_batch,
        results.last_actions,
        results.virtual_to_play_batch,
    )


def update_tree_q(root: Node, min_max_stats: MinMaxStats, discount: float, players: int):
    """
    Feed the normalizer with the Q value of every expanded node below the root.

    Parameters
    ----------
    root: Node
        Root of the tree
    min_max_stats: MinMaxStats
        Normalizer of the tree
    discount: float
        Reward discount
    players: int
        1 or 2
    """
    # ##: Each entry carries the reset flag of the node's parent.
    stack = [(root, 0)]
    while stack:
        node, parent_is_reset = stack.pop()

        if node is not root:
            true_reward = node.value_prefix if parent_is_reset == 1 else node.value_prefix - node.parent_value_prefix
            if players == 1:
                qsa = true_reward + discount * node.value()
            else:
                qsa = true_reward + discount * (-1) * node.value()
            min_max_stats.update(qsa)

        for action in node.legal_actions:
            child = node.get_child(action)
            if child is not None and child.expanded():
                child.parent_value_prefix = node.value_prefix
                stack.append((child, node.is_reset))
