"""
走法定义与走法生成器

一步走法 = 从某个牌堆 (source) 取若干张牌放到另一个牌堆 (target)
"""
from enum import Enum
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, List, Optional, Tuple

from .cards import Card

if TYPE_CHECKING:
    from .state import GameState, PlayerState


class PileType(Enum):
    """牌堆类型"""
    STOCK = "stock"              # 牌库 (背面朝上)
    WASTE = "waste"              # 废牌堆 (只来自牌库翻牌)
    FOUNDATION = "foundation"    # 收牌区 (A→K 同花色)
    TABLEAU = "tableau"          # 桌面牌列 (红黑交替递减)


# 每个玩家的牌堆数量
FOUNDATION_COUNT = 4
TABLEAU_COUNT = 7


@dataclass(frozen=True, slots=True)
class PileRef:
    """
    牌堆引用

    Attributes:
        type: 牌堆类型
        index: 同类牌堆中的序号 (stock/waste 恒为 0)
    """
    type: PileType
    index: int = 0


STOCK = PileRef(PileType.STOCK)
WASTE = PileRef(PileType.WASTE)


def foundation(index: int) -> PileRef:
    return PileRef(PileType.FOUNDATION, index)


def tableau(index: int) -> PileRef:
    return PileRef(PileType.TABLEAU, index)


@dataclass(frozen=True, slots=True)
class Move:
    """
    不可变走法

    Attributes:
        type: 走法分类 (约定与 source.type 相同)
        source: 来源牌堆
        target: 目标牌堆
        cards: 被移动的牌 (自下而上)
        timestamp: 执行时间 (秒)，未执行时为 None
    """
    type: PileType
    source: PileRef
    target: PileRef
    cards: Tuple[Card, ...]
    timestamp: Optional[float] = None

    @classmethod
    def create(cls, source: PileRef, target: PileRef, cards) -> 'Move':
        """由来源、目标与牌创建走法"""
        return cls(type=source.type, source=source, target=target, cards=tuple(cards))

    @classmethod
    def stock_draw(cls, player: 'PlayerState') -> Optional['Move']:
        """从牌库翻一张到废牌堆；牌库为空时返回 None"""
        if not player.stock:
            return None
        return cls.create(STOCK, WASTE, player.stock[-1:])

    def stamped(self, timestamp: float) -> 'Move':
        """带执行时间的副本"""
        return replace(self, timestamp=timestamp)

    @property
    def is_stock_draw(self) -> bool:
        return self.source.type == PileType.STOCK and self.target.type == PileType.WASTE

    def __len__(self) -> int:
        return len(self.cards)


class MoveGenerator:
    """
    合法走法生成器

    枚举当前行动玩家的候选走法，并用规则引擎过滤
    """

    def __init__(self, state: 'GameState'):
        """
        Args:
            state: 游戏状态 (以 current_player 为行动方)
        """
        self.state = state
        self.player = state.acting_player

    def gen_stock_draws(self) -> List[Move]:
        move = Move.stock_draw(self.player)
        return [move] if move is not None else []

    def gen_waste_moves(self) -> List[Move]:
        """废牌堆顶牌 → 收牌区/牌列"""
        cards = self.player.source_cards(WASTE)
        if not cards:
            return []
        return self._to_all_targets(WASTE, cards)

    def gen_tableau_moves(self) -> List[Move]:
        """牌列末尾的每段翻开牌 → 收牌区/牌列"""
        moves = []
        for i, pile in enumerate(self.player.tableau):
            source = tableau(i)
            face_up = self.player.face_up_count(i)
            for count in range(1, face_up + 1):
                cards = pile[-count:]
                for target in self._targets(exclude=source):
                    # 多张牌只能放到牌列
                    if count > 1 and target.type == PileType.FOUNDATION:
                        continue
                    moves.append(Move.create(source, target, cards))
        return moves

    def gen_foundation_moves(self) -> List[Move]:
        """收牌区顶牌 → 牌列 (或另一个空收牌区)"""
        moves = []
        for i, pile in enumerate(self.player.foundations):
            if not pile:
                continue
            source = foundation(i)
            moves.extend(self._to_all_targets(source, pile[-1:]))
        return moves

    def generate_all(self) -> List[Move]:
        """
        生成所有合法走法

        顺序: 翻牌、废牌、牌列、收牌区

        Returns:
            合法走法列表
        """
        from .rules import RuleEngine

        candidates = (
            self.gen_stock_draws()
            + self.gen_waste_moves()
            + self.gen_tableau_moves()
            + self.gen_foundation_moves()
        )
        return [m for m in candidates if RuleEngine.is_valid_move(m, self.state)]

    def _targets(self, exclude: Optional[PileRef] = None) -> List[PileRef]:
        refs = [foundation(i) for i in range(FOUNDATION_COUNT)]
        refs += [tableau(i) for i in range(TABLEAU_COUNT)]
        return [r for r in refs if r != exclude]

    def _to_all_targets(self, source: PileRef, cards: Tuple[Card, ...]) -> List[Move]:
        return [Move.create(source, target, cards) for target in self._targets(exclude=source)]
