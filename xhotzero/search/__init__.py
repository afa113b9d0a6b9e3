from .encoding import ActionEncoder, ActionEncoding
from .helpers import KnownBounds, MinMaxStats, MinMaxStatsList
from .node import Node, NodeArena
from .roots import Roots, SearchResults
from .mcts import (
    backpropagate,
    batch_backpropagate,
    batch_traverse,
    infer_players,
    select_child,
    ucb_score,
    update_tree_q,
)
from .planner import Network, get_policy_from_visits, run_mcts, select_action
