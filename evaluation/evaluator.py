"""
评估器

智能体定义与胜率评估
"""
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
import logging

import numpy as np

from core.moves import Move, PileType

logger = logging.getLogger(__name__)


@dataclass
class EvalResult:
    """评估结果"""
    win_rate: float
    avg_score: float
    avg_length: float
    games_played: int
    lead_rate: float = 0.0        # 未分胜负时领先的比例
    stalled_rate: float = 0.0
    extra_stats: Dict[str, float] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"EvalResult(win_rate={self.win_rate:.2%}, "
            f"avg_score={self.avg_score:.1f}, "
            f"games={self.games_played})"
        )


class Agent:
    """智能体基类"""

    def __init__(self, name: str = "agent"):
        self.name = name

    def act(self, obs: Dict[str, Any], legal_moves: List[Move]) -> Optional[Move]:
        """选择走法；没有合法走法时返回 None"""
        raise NotImplementedError

    def reset(self):
        """重置状态"""
        pass


class RandomAgent(Agent):
    """随机智能体"""

    def __init__(self, name: str = "random", seed: Optional[int] = None):
        super().__init__(name)
        self.rng = np.random.default_rng(seed)

    def act(self, obs: Dict[str, Any], legal_moves: List[Move]) -> Optional[Move]:
        if not legal_moves:
            return None
        idx = self.rng.integers(len(legal_moves))
        return legal_moves[idx]


class GreedyAgent(Agent):
    """
    贪心智能体

    优先级:
    1. 收牌 (废牌/牌列 → 收牌区)
    2. 能翻开背面牌的牌列移动
    3. 废牌 → 牌列
    4. 翻牌
    5. 其他不会原地打转的走法
    """

    def __init__(self, name: str = "greedy"):
        super().__init__(name)

    def act(self, obs: Dict[str, Any], legal_moves: List[Move]) -> Optional[Move]:
        if not legal_moves:
            return None

        ranked = sorted(
            (m for m in legal_moves if self._priority(obs, m) is not None),
            key=lambda m: self._priority(obs, m),
        )
        if ranked:
            return ranked[0]
        return legal_moves[0]

    @staticmethod
    def _priority(obs: Dict[str, Any], move: Move) -> Optional[int]:
        """走法优先级，越小越好；None 表示不主动选择"""
        source, target = move.source.type, move.target.type

        if target == PileType.FOUNDATION:
            if source == PileType.FOUNDATION:
                return None
            return 0

        if source == PileType.TABLEAU:
            face_up = int(obs["tableau"][move.source.index].sum())
            hidden = int(obs["tableau_hidden"][move.source.index])
            if len(move.cards) == face_up and hidden > 0:
                return 1
            return None

        if source == PileType.WASTE:
            return 2

        if move.is_stock_draw:
            return 3

        return None


class Evaluator:
    """
    评估器

    让待评估智能体与对手交替先手对战，统计胜率
    """

    def __init__(self, env_fn: Callable):
        self.env_fn = env_fn

    def evaluate(
        self,
        agent: Agent,
        n_games: int = 100,
        opponent: Optional[Agent] = None,
        verbose: bool = False,
    ) -> EvalResult:
        """
        评估智能体

        Args:
            agent: 待评估智能体
            n_games: 对局数量
            opponent: 对手 (默认随机智能体)
            verbose: 是否输出详情

        Returns:
            评估结果
        """
        from .arena import Arena

        if opponent is None:
            opponent = RandomAgent("opponent")

        arena = Arena(self.env_fn)

        wins = 0
        leads = 0
        stalled = 0
        total_score = 0
        total_length = 0

        for game_idx in range(n_games):
            # 轮流先手
            seat = game_idx % 2
            seats = [agent, opponent] if seat == 0 else [opponent, agent]
            result = arena.play_game(seats)

            # 按座位统计
            if result.winner_seat == seat:
                wins += 1
            elif result.winner_seat is None and result.leader_seat == seat:
                leads += 1
            if result.stalled:
                stalled += 1
            total_score += result.scores[seat]
            total_length += result.length

            if verbose and (game_idx + 1) % 10 == 0:
                logger.info(f"Game {game_idx + 1}/{n_games}, Win rate: {wins/(game_idx+1):.2%}")

        games = max(n_games, 1)
        return EvalResult(
            win_rate=wins / games,
            avg_score=total_score / games,
            avg_length=total_length / games,
            games_played=n_games,
            lead_rate=leads / games,
            stalled_rate=stalled / games,
        )
