"""
奖励函数

支持两种奖励设计:
- 终局奖励 (sparse)
- 过程奖励 (shaped): 每收一张牌给予奖励
"""
from dataclasses import dataclass
from typing import Dict, Optional
from enum import Enum

from core.state import GameState, PlayerId


class RewardType(Enum):
    """奖励类型"""
    SPARSE = "sparse"      # 仅终局奖励
    SHAPED = "shaped"      # 过程奖励


@dataclass
class RewardConfig:
    """奖励配置"""
    reward_type: RewardType = RewardType.SHAPED
    win_reward: float = 1.0
    lose_reward: float = -1.0
    card_reward: float = 0.02        # 每多收一张牌
    invalid_move_penalty: float = -1.0


class RewardCalculator:
    """
    奖励计算器

    根据配置计算不同类型的奖励
    """

    def __init__(self, config: Optional[RewardConfig] = None):
        self.config = config or RewardConfig()

    def compute(
        self,
        state: GameState,
        prev_state: Optional[GameState] = None,
        player: Optional[PlayerId] = None,
    ) -> float:
        """
        计算奖励

        Args:
            state: 当前状态
            prev_state: 前一状态 (用于 shaped 奖励)
            player: 计算奖励的玩家视角

        Returns:
            奖励值
        """
        if player is None:
            player = state.current_player

        if self.config.reward_type == RewardType.SPARSE:
            return self._sparse_reward(state, player)
        elif self.config.reward_type == RewardType.SHAPED:
            return self._shaped_reward(state, prev_state, player)
        else:
            return 0.0

    def _sparse_reward(self, state: GameState, player: PlayerId) -> float:
        """
        稀疏奖励：仅在对局结束时给予

        Returns:
            胜利: +1, 失败: -1, 其他: 0
        """
        if state.winner is None:
            return 0.0
        if state.winner == player:
            return self.config.win_reward
        return self.config.lose_reward

    def _shaped_reward(
        self,
        state: GameState,
        prev_state: Optional[GameState],
        player: PlayerId,
    ) -> float:
        """
        过程奖励

        奖励组成:
        1. 终局奖励
        2. 收牌区张数变化
        """
        reward = self._sparse_reward(state, player)

        if prev_state is not None:
            gained = state.get_player(player).score - prev_state.get_player(player).score
            reward += gained * self.config.card_reward

        return reward


class MultiAgentReward:
    """
    双人奖励

    同时计算两名玩家的奖励
    """

    def __init__(self, config: Optional[RewardConfig] = None):
        self.calculator = RewardCalculator(config)

    def compute_all(
        self,
        state: GameState,
        prev_state: Optional[GameState] = None,
    ) -> Dict[str, float]:
        return {
            f"player{int(player)}": self.calculator.compute(state, prev_state, player)
            for player in PlayerId
        }


def create_reward_calculator(reward_type: str = "shaped", **kwargs) -> RewardCalculator:
    """
    工厂函数：创建奖励计算器

    Args:
        reward_type: 奖励类型 ("sparse", "shaped")
        **kwargs: RewardConfig 的其他字段

    Returns:
        RewardCalculator 实例
    """
    config = RewardConfig(reward_type=RewardType(reward_type), **kwargs)
    return RewardCalculator(config)
