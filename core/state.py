"""
游戏状态定义

使用不可变数据结构，支持:
- 哈希 (用于搜索时的状态缓存)
- 线程安全
- 结构共享 (新状态复用未改动的牌堆)
"""
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Dict, List, Optional, Tuple
import time

from .cards import Card, create_deck, seeded_shuffle, choose_seed
from .moves import FOUNDATION_COUNT, TABLEAU_COUNT, Move, PileRef, PileType
from .rules import RuleEngine

Pile = Tuple[Card, ...]

# 发牌布局
STOCK_SIZE = 24
TABLEAU_PILE_SIZE = 4

CARDS_PER_DRAW_CHOICES = (1, 3)


class PlayerId(IntEnum):
    """玩家编号"""
    ONE = 1
    TWO = 2

    @property
    def other(self) -> 'PlayerId':
        return PlayerId.TWO if self == PlayerId.ONE else PlayerId.ONE


@dataclass(frozen=True)
class GameConfig:
    """
    对局配置

    Attributes:
        max_stock_passes: 牌库翻完次数上限
        cards_per_draw: 每次翻牌张数 (1 或 3，仅记录，翻牌始终一张)
    """
    max_stock_passes: int = 3
    cards_per_draw: int = 1

    def __post_init__(self):
        if self.max_stock_passes < 0:
            raise ValueError(f"max_stock_passes must be >= 0, got {self.max_stock_passes}")
        if self.cards_per_draw not in CARDS_PER_DRAW_CHOICES:
            raise ValueError(
                f"cards_per_draw must be one of {CARDS_PER_DRAW_CHOICES}, got {self.cards_per_draw}"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'GameConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)


@dataclass(frozen=True)
class PlayerState:
    """
    单个玩家的牌面

    Attributes:
        stock: 牌库
        waste: 废牌堆
        foundations: 4 个收牌区
        tableau: 7 个牌列
        timer: 已用时间 (秒)
        move_log: 已执行的走法 (只追加)
        stock_passes: 牌库翻空的次数
    """
    stock: Pile = ()
    waste: Pile = ()
    foundations: Tuple[Pile, ...] = ((),) * FOUNDATION_COUNT
    tableau: Tuple[Pile, ...] = ((),) * TABLEAU_COUNT
    timer: float = 0.0
    move_log: Tuple[Move, ...] = ()
    stock_passes: int = 0

    @classmethod
    def deal(cls, deck: Tuple[Card, ...]) -> 'PlayerState':
        """
        按固定布局发牌

        前 24 张进牌库 (背面朝上)，其余 28 张分成 7 列、每列 4 张，
        每列只翻开最后一张
        """
        stock = tuple(c.flipped(False) for c in deck[:STOCK_SIZE])
        piles = []
        for i in range(TABLEAU_COUNT):
            start = STOCK_SIZE + i * TABLEAU_PILE_SIZE
            cards = [c.flipped(False) for c in deck[start:start + TABLEAU_PILE_SIZE]]
            cards[-1] = cards[-1].flipped(True)
            piles.append(tuple(cards))
        return cls(stock=stock, tableau=tuple(piles))

    def pile(self, ref: PileRef) -> Optional[Pile]:
        """按引用取牌堆，序号越界时返回 None"""
        if ref.type == PileType.STOCK:
            return self.stock if ref.index == 0 else None
        if ref.type == PileType.WASTE:
            return self.waste if ref.index == 0 else None
        group = self.foundations if ref.type == PileType.FOUNDATION else self.tableau
        if not 0 <= ref.index < len(group):
            return None
        return group[ref.index]

    def source_cards(self, ref: PileRef, count: int = 1) -> Optional[Pile]:
        """
        取牌堆末尾的 count 张牌

        Returns:
            牌元组；牌堆不存在、为空或不足 count 张时返回 None
        """
        pile = self.pile(ref)
        if not pile or count < 1 or count > len(pile):
            return None
        return pile[-count:]

    def face_up_count(self, index: int) -> int:
        """第 index 列末尾连续翻开的牌数"""
        count = 0
        for card in reversed(self.tableau[index]):
            if not card.face_up:
                break
            count += 1
        return count

    def all_cards(self) -> List[Card]:
        """该玩家所有的牌 (用于守恒检查)"""
        cards = list(self.stock) + list(self.waste)
        for pile in self.foundations + self.tableau:
            cards.extend(pile)
        return cards

    @property
    def score(self) -> int:
        return sum(len(pile) for pile in self.foundations)

    def with_move(self, move: Move, timestamp: float) -> 'PlayerState':
        """
        执行 (已验证的) 走法后的新牌面

        不做合法性检查，调用方负责先验证

        Args:
            move: 走法
            timestamp: 执行时间

        Returns:
            新牌面
        """
        source, target = move.source, move.target
        count = len(move.cards)
        moved = self.source_cards(source, count)

        stock = self.stock
        waste = self.waste
        foundations = list(self.foundations)
        piles = list(self.tableau)
        stock_passes = self.stock_passes

        # 从来源移除
        if source.type == PileType.STOCK:
            stock = stock[:-1]
            if not stock:
                stock_passes += 1
        elif source.type == PileType.WASTE:
            waste = waste[:-1]
        elif source.type == PileType.FOUNDATION:
            foundations[source.index] = foundations[source.index][:-1]
        elif source.type == PileType.TABLEAU:
            remaining = piles[source.index][:-count]
            # 翻开新的顶牌
            if remaining:
                remaining = remaining[:-1] + (remaining[-1].flipped(True),)
            piles[source.index] = remaining

        # 放入目标
        if target.type == PileType.FOUNDATION:
            foundations[target.index] = foundations[target.index] + moved[:1]
        elif target.type == PileType.TABLEAU:
            piles[target.index] = piles[target.index] + moved
        elif target.type == PileType.WASTE:
            waste = waste + (moved[0].flipped(True),)

        return PlayerState(
            stock=stock,
            waste=waste,
            foundations=tuple(foundations),
            tableau=tuple(piles),
            timer=self.timer,
            move_log=self.move_log + (move.stamped(timestamp),),
            stock_passes=stock_passes,
        )


@dataclass(frozen=True)
class GameState:
    """
    不可变对局状态

    使用 frozen=True 保证:
    - 可哈希
    - 线程安全
    - 旧状态永远不会被修改

    Attributes:
        player1: 玩家 1 的牌面
        player2: 玩家 2 的牌面
        current_player: 当前行动玩家
        start_time: 开始时间 (秒)，未开始为 None
        end_time: 结束时间 (秒)，与 winner 同时设置
        winner: 赢家
        shuffle_seed: 发牌使用的种子 (仅记录)
        max_stock_passes: 牌库翻完次数上限
        cards_per_draw: 每次翻牌张数
    """
    player1: PlayerState
    player2: PlayerState
    current_player: PlayerId = PlayerId.ONE
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    winner: Optional[PlayerId] = None
    shuffle_seed: int = 0
    max_stock_passes: int = 3
    cards_per_draw: int = 1

    @classmethod
    def initial(cls, config: Optional[GameConfig] = None, seed: Optional[int] = None) -> 'GameState':
        """
        创建初始对局状态

        两名玩家使用同一种子对同一副标准牌组洗牌，因此拿到完全相同的牌序，
        但各自持有独立的牌堆

        Args:
            config: 对局配置
            seed: 洗牌种子，None 时随机选择

        Returns:
            初始状态 (尚未开始计时)
        """
        config = config or GameConfig()
        if seed is None:
            seed = choose_seed()

        deck = create_deck()
        player1 = PlayerState.deal(seeded_shuffle(deck, seed))
        player2 = PlayerState.deal(seeded_shuffle(deck, seed))

        return cls(
            player1=player1,
            player2=player2,
            current_player=PlayerId.ONE,
            shuffle_seed=seed,
            max_stock_passes=config.max_stock_passes,
            cards_per_draw=config.cards_per_draw,
        )

    def get_player(self, player_id: PlayerId) -> PlayerState:
        return self.player1 if player_id == PlayerId.ONE else self.player2

    @property
    def acting_player(self) -> PlayerState:
        """当前行动玩家的牌面"""
        return self.get_player(self.current_player)

    def with_player(self, player_id: PlayerId, player: PlayerState) -> 'GameState':
        """替换指定玩家牌面后的新状态"""
        if player_id == PlayerId.ONE:
            return replace(self, player1=player)
        return replace(self, player2=player)

    def with_move(self, move: Move, timestamp: Optional[float] = None) -> 'GameState':
        """
        执行走法后的新状态

        走法非法时返回自身 (同一对象)

        Args:
            move: 走法
            timestamp: 执行时间，默认当前时间

        Returns:
            新状态
        """
        if not RuleEngine.is_valid_move(move, self):
            return self
        if timestamp is None:
            timestamp = time.time()
        player = self.acting_player.with_move(move, timestamp)
        return self.with_player(self.current_player, player)

    def started(self, at: Optional[float] = None) -> 'GameState':
        """开始计时"""
        return replace(self, start_time=time.time() if at is None else at)

    def with_winner(self, winner: PlayerId, at: Optional[float] = None) -> 'GameState':
        """记录赢家与结束时间 (二者总是同时设置)"""
        return replace(self, winner=winner, end_time=time.time() if at is None else at)

    def with_next_player(self) -> 'GameState':
        """轮到另一名玩家"""
        return replace(self, current_player=self.current_player.other)

    def with_timer(self, now: Optional[float] = None) -> 'GameState':
        """
        刷新当前玩家的计时

        仅在已开始且未结束时生效；另一名玩家的计时不变
        """
        if self.start_time is None or self.end_time is not None:
            return self
        if now is None:
            now = time.time()
        player = replace(self.acting_player, timer=now - self.start_time)
        return self.with_player(self.current_player, player)

    @property
    def is_finished(self) -> bool:
        return self.winner is not None


def initialize_game(config: Optional[GameConfig] = None, seed: Optional[int] = None) -> GameState:
    """创建初始对局 (见 GameState.initial)"""
    return GameState.initial(config, seed)


def is_valid_move(move: Move, state: GameState) -> bool:
    return RuleEngine.is_valid_move(move, state)


def make_move(move: Move, state: GameState, timestamp: Optional[float] = None) -> GameState:
    """
    执行走法

    不切换行动玩家，也不判定胜负，由调用方在成功后处理

    Returns:
        新状态；走法非法时原样返回输入
    """
    return state.with_move(move, timestamp)


def check_win_condition(state: GameState) -> bool:
    """当前行动玩家的四个收牌区是否都已收满"""
    return RuleEngine.is_complete(state.acting_player)


def is_game_over(state: GameState) -> bool:
    return state.winner is not None


def get_player_score(player: PlayerState) -> int:
    """收牌区总张数 (0..52)"""
    return player.score


def get_game_progress(state: GameState) -> Dict[str, int]:
    return {
        "player1": get_player_score(state.player1),
        "player2": get_player_score(state.player2),
    }


def get_player_time(player: PlayerState) -> float:
    return player.timer


def update_player_timer(state: GameState, now: Optional[float] = None) -> GameState:
    """刷新当前玩家计时 (见 GameState.with_timer)"""
    return state.with_timer(now)


def format_time(seconds: float) -> str:
    """格式化为 "分:秒"，如 125.7 -> "2:05" """
    minutes = int(seconds // 60)
    remaining = int(seconds % 60)
    return f"{minutes}:{remaining:02d}"
