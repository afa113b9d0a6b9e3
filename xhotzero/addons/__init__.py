"""..."""
from .config import ActionSpaceConfig, MonteCarlosConfig, NoiseConfig, UpperConfidenceBounds
from .types import CompositeAction, NetworkOutput, SearchStats
