"""
Environment Layer - Gymnasium 兼容环境

Modules:
    solitaire_env: 主环境类 (对局流程)
    observation: 观测空间与走法编码
    reward: 奖励函数
"""
from .solitaire_env import (
    CompetitiveSolitaireEnv,
    MultiAgentSolitaireEnv,
    make_env,
    render_player,
)

from .observation import (
    Observation,
    ObservationBuilder,
    MoveEncoder,
    get_move_encoder,
)

from .reward import (
    RewardType,
    RewardConfig,
    RewardCalculator,
    MultiAgentReward,
    create_reward_calculator,
)

__all__ = [
    # env
    "CompetitiveSolitaireEnv",
    "MultiAgentSolitaireEnv",
    "make_env",
    "render_player",
    # observation
    "Observation",
    "ObservationBuilder",
    "MoveEncoder",
    "get_move_encoder",
    # reward
    "RewardType",
    "RewardConfig",
    "RewardCalculator",
    "MultiAgentReward",
    "create_reward_calculator",
]
