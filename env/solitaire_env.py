"""
双人竞速接龙 Gymnasium 环境

遵循标准 Gymnasium API，负责对局流程:
开始计时 → 执行走法 → 判定胜负 → 记录赢家或轮换玩家
"""
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import logging
import time

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from core.cards import DECK_SIZE, card_display
from core.moves import FOUNDATION_COUNT, TABLEAU_COUNT, Move, MoveGenerator
from core.state import (
    GameConfig,
    GameState,
    PlayerId,
    PlayerState,
    check_win_condition,
    format_time,
    get_game_progress,
    initialize_game,
    is_valid_move,
    make_move,
    update_player_timer,
)

from .observation import ObservationBuilder, get_move_encoder
from .reward import MultiAgentReward, RewardCalculator, RewardConfig, RewardType

logger = logging.getLogger(__name__)


class CompetitiveSolitaireEnv(gym.Env):
    """
    双人竞速接龙环境

    两名玩家各自一副牌面，轮流走一步；先把四个收牌区收满者获胜。

    API:
    - reset() -> observation, info
    - step(action) -> observation, reward, terminated, truncated, info
    - tick() -> 刷新当前玩家计时
    """

    metadata = {
        "render_modes": ["human", "ansi"],
        "name": "CompetitiveSolitaire-v0",
    }

    def __init__(
        self,
        render_mode: Optional[str] = None,
        reward_type: str = "shaped",
        max_stock_passes: int = 3,
        cards_per_draw: int = 1,
        max_steps: int = 1000,
        seed: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            render_mode: 渲染模式 ("human", "ansi", None)
            reward_type: 奖励类型 ("sparse", "shaped")
            max_stock_passes: 牌库翻完次数上限
            cards_per_draw: 每次翻牌张数 (1 或 3)
            max_steps: 最大步数，超过后截断
            seed: 洗牌种子 (None 表示每局随机)
            clock: 时钟函数，返回秒
        """
        super().__init__()

        self.render_mode = render_mode
        self.config = GameConfig(max_stock_passes=max_stock_passes, cards_per_draw=cards_per_draw)
        self.max_steps = max_steps
        self._seed = seed
        self._clock = clock

        # 观测构建器
        self._obs_builder = ObservationBuilder()

        # 奖励计算器
        self._reward_calculator = RewardCalculator(
            RewardConfig(reward_type=RewardType(reward_type))
        )

        # 走法编码器
        self._move_encoder = get_move_encoder()

        # 状态
        self._state: Optional[GameState] = None
        self._prev_state: Optional[GameState] = None
        self._steps = 0

        self._define_spaces()

    def _define_spaces(self):
        """定义观测和动作空间"""
        self.action_space = spaces.Discrete(self._move_encoder.num_moves)

        self.observation_space = spaces.Dict({
            "stock": spaces.Box(0, 1, shape=(1,), dtype=np.float32),
            "waste_top": spaces.Box(0, 1, shape=(DECK_SIZE,), dtype=np.float32),
            "waste": spaces.Box(0, 1, shape=(DECK_SIZE,), dtype=np.float32),
            "foundations": spaces.Box(0, 1, shape=(FOUNDATION_COUNT, DECK_SIZE), dtype=np.float32),
            "tableau": spaces.Box(0, 1, shape=(TABLEAU_COUNT, DECK_SIZE), dtype=np.float32),
            "tableau_hidden": spaces.Box(0, DECK_SIZE, shape=(TABLEAU_COUNT,), dtype=np.float32),
            "scores": spaces.Box(0, 1, shape=(2,), dtype=np.float32),
            "stock_passes_left": spaces.Box(0, np.inf, shape=(1,), dtype=np.float32),
            "position": spaces.Box(0, 1, shape=(2,), dtype=np.float32),
        })

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        重置环境并开始计时

        Args:
            seed: 洗牌种子
            options: 额外选项，"state" 可指定起始 GameState

        Returns:
            (observation, info) 元组
        """
        super().reset(seed=seed)

        game_seed = seed if seed is not None else self._seed

        options = options or {}
        if options.get("state") is not None:
            state = options["state"]
        else:
            state = initialize_game(self.config, game_seed)

        if state.start_time is None:
            state = state.started(self._clock())

        self._state = state
        self._prev_state = None
        self._steps = 0
        logger.debug(f"New match, seed={state.shuffle_seed}")

        obs = self._build_observation()
        info = self._build_info()

        if self.render_mode == "human":
            self.render()

        return obs, info

    def step(
        self,
        action: Union[int, Move],
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        执行走法

        非法走法不改变状态，给予惩罚；合法走法执行后先判定胜负，
        未获胜则轮到另一名玩家

        Args:
            action: 走法索引或 Move 对象

        Returns:
            (observation, reward, terminated, truncated, info) 元组
        """
        if self._state is None:
            raise RuntimeError("Environment not reset. Call reset() first.")
        if self._state.is_finished:
            raise RuntimeError("Match is over. Call reset() to start a new one.")

        now = self._clock()
        self._state = update_player_timer(self._state, now)
        mover = self._state.current_player

        move = self._decode_action(action)

        if move is None or not is_valid_move(move, self._state):
            logger.debug(f"Rejected move for player {int(mover)}: {move}")
            obs = self._build_observation()
            info = self._build_info()
            info["error"] = "Invalid move"
            return obs, self._reward_calculator.config.invalid_move_penalty, False, False, info

        self._prev_state = self._state
        state = make_move(move, self._state, timestamp=now)

        terminated = check_win_condition(state)
        if terminated:
            state = state.with_winner(mover, now)
            logger.info(f"Player {int(mover)} wins after {self._steps + 1} steps")
        else:
            state = state.with_next_player()

        self._state = state
        self._steps += 1

        obs = self._build_observation()
        reward = self._reward_calculator.compute(self._state, self._prev_state, mover)
        info = self._build_info()

        truncated = False
        if not terminated:
            if self._steps >= self.max_steps:
                truncated = True
            elif not info["legal_moves"]:
                truncated = True
                info["stalled"] = True
                logger.debug(f"Player {int(self._state.current_player)} has no legal move")

        if self.render_mode == "human":
            self.render()

        return obs, reward, terminated, truncated, info

    def tick(self) -> GameState:
        """刷新当前玩家计时 (由外部按固定间隔调用)"""
        if self._state is None:
            raise RuntimeError("Environment not reset. Call reset() first.")
        self._state = update_player_timer(self._state, self._clock())
        return self._state

    def _decode_action(self, action: Union[int, Move]) -> Optional[Move]:
        """解码动作"""
        if isinstance(action, Move):
            return action
        elif isinstance(action, (int, np.integer)):
            idx = int(action)
            if not 0 <= idx < self._move_encoder.num_moves:
                raise ValueError(
                    f"Invalid move index: {idx}. "
                    f"Valid range: 0-{self._move_encoder.num_moves - 1}"
                )
            return self._move_encoder.decode(idx, self._state)
        else:
            raise ValueError(f"Invalid action type: {type(action)}")

    def _build_observation(self) -> Dict[str, np.ndarray]:
        obs = self._obs_builder.build(self._state)
        return obs.to_dict()

    def _build_info(self) -> Dict[str, Any]:
        """构建 info 字典"""
        legal_moves = self.get_legal_moves()

        info = {
            "current_player": int(self._state.current_player),
            "legal_moves": legal_moves,
            "legal_move_mask": self._move_encoder.build_legal_mask(legal_moves),
            "legal_move_indices": self._move_encoder.get_legal_move_indices(legal_moves),
            "step_count": self._steps,
            "progress": get_game_progress(self._state),
            "timers": {
                "player1": self._state.player1.timer,
                "player2": self._state.player2.timer,
            },
        }

        if self._state.is_finished:
            info["winner"] = int(self._state.winner)
            info["duration"] = self._state.end_time - self._state.start_time

        return info

    def render(self) -> Optional[str]:
        """渲染环境"""
        if self.render_mode == "ansi" or self.render_mode == "human":
            return self._render_text()
        return None

    def _render_text(self) -> str:
        """文本渲染"""
        state = self._state
        lines = ["=" * 50]

        if state.is_finished:
            lines.append(f"Player {int(state.winner)} wins!")
        else:
            lines.append(f"Current Player: {int(state.current_player)}")

        for player_id in PlayerId:
            marker = "*" if player_id == state.current_player else " "
            lines.append("-" * 50)
            lines.extend(render_player(state, player_id, marker))

        lines.append("=" * 50)

        output = "\n".join(lines)
        if self.render_mode == "human":
            print(output)
        return output

    def close(self):
        pass

    @property
    def state(self) -> Optional[GameState]:
        """获取当前状态"""
        return self._state

    def get_legal_moves(self) -> List[Move]:
        """获取当前合法走法"""
        if self._state is None or self._state.is_finished:
            return []
        return MoveGenerator(self._state).generate_all()

    def sample_action(self) -> Optional[Move]:
        """随机采样一个合法走法"""
        legal_moves = self.get_legal_moves()
        if not legal_moves:
            return None
        idx = self.np_random.integers(len(legal_moves))
        return legal_moves[idx]


class MultiAgentSolitaireEnv(CompetitiveSolitaireEnv):
    """
    多智能体环境

    返回两名玩家各自视角的观测和奖励
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._multi_reward = MultiAgentReward(self._reward_calculator.config)

    def _all_observations(self) -> Dict[str, Dict[str, np.ndarray]]:
        return {
            f"player{int(player)}": self._obs_builder.build(self._state, player).to_dict()
            for player in PlayerId
        }

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Dict[str, Dict], Dict[str, Any]]:
        """重置并返回两名玩家的观测"""
        _, info = super().reset(seed=seed, options=options)
        return self._all_observations(), info

    def step(
        self,
        action: Union[int, Move],
    ) -> Tuple[Dict[str, Dict], Dict[str, float], bool, bool, Dict[str, Any]]:
        """执行走法并返回两名玩家的结果"""
        _, reward, terminated, truncated, info = super().step(action)

        if "error" in info:
            rewards = {f"player{int(p)}": 0.0 for p in PlayerId}
            rewards[f"player{info['current_player']}"] = reward
        else:
            rewards = self._multi_reward.compute_all(self._state, self._prev_state)

        return self._all_observations(), rewards, terminated, truncated, info


def render_player(state: GameState, player_id: PlayerId, marker: str = " ") -> List[str]:
    """
    单个玩家牌面的文本表示

    Returns:
        文本行列表
    """
    player: PlayerState = state.get_player(player_id)
    waste_top = card_display(player.waste[-1]) if player.waste else "  "
    foundations = " ".join(
        f"[{card_display(pile[-1]) if pile else '  '}]" for pile in player.foundations
    )

    lines = [
        f"{marker}Player {int(player_id)}  "
        f"Cards: {player.score}/{DECK_SIZE}  "
        f"Time: {format_time(player.timer)}  "
        f"Stock Passes: {player.stock_passes}/{state.max_stock_passes}",
        f"Stock: {len(player.stock):2d}  Waste: {waste_top}  Foundations: {foundations}",
        "    " + "".join(f"{i:<5d}" for i in range(TABLEAU_COUNT)),
    ]

    depth = max((len(pile) for pile in player.tableau), default=0)
    for row in range(depth):
        cells = []
        for pile in player.tableau:
            cells.append(f"{card_display(pile[row]):<5s}" if row < len(pile) else " " * 5)
        lines.append(f"{row:2d}: " + "".join(cells).rstrip())

    return lines


def make_env(
    env_id: str = "CompetitiveSolitaire-v0",
    **kwargs
) -> CompetitiveSolitaireEnv:
    """
    工厂函数：创建环境

    Args:
        env_id: 环境 ID
        **kwargs: 环境参数

    Returns:
        CompetitiveSolitaireEnv 实例
    """
    if "multi_agent" in kwargs and kwargs.pop("multi_agent"):
        return MultiAgentSolitaireEnv(**kwargs)
    return CompetitiveSolitaireEnv(**kwargs)
