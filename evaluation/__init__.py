"""
Evaluation Layer - 评估框架

Modules:
    evaluator: 智能体和评估器
    arena: 对战竞技场
"""
from .evaluator import (
    EvalResult,
    Agent,
    RandomAgent,
    GreedyAgent,
    Evaluator,
)
from .arena import (
    MatchResult,
    TournamentResult,
    Arena,
)

__all__ = [
    # evaluator
    "EvalResult",
    "Agent",
    "RandomAgent",
    "GreedyAgent",
    "Evaluator",
    # arena
    "MatchResult",
    "TournamentResult",
    "Arena",
]
