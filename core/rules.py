"""
规则引擎 - 走法合法性验证

所有方法都是纯函数，无状态
"""
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from .cards import CARDS_PER_SUIT, Card, Rank
from .moves import FOUNDATION_COUNT, Move, PileType

if TYPE_CHECKING:
    from .state import GameState, PlayerState


class RuleEngine:
    """
    纸牌接龙规则引擎

    在标准 Klondike 规则之上增加对局限制 (牌库翻完次数上限)
    所有方法都是静态方法，无状态
    """

    @staticmethod
    def is_one_above(card: Card, base: Card) -> bool:
        """card 的点数是否恰好比 base 大 1 (A<2<...<K，不循环)"""
        return int(card.rank) - int(base.rank) == 1

    @staticmethod
    def can_place_on_foundation(card: Card, pile: Sequence[Card]) -> bool:
        """
        检查单张牌能否放入收牌区

        空收牌区只接受 A；否则须同花色且点数大 1
        """
        if not pile:
            return card.rank == Rank.ACE
        top = pile[-1]
        return card.suit == top.suit and RuleEngine.is_one_above(card, top)

    @staticmethod
    def can_place_on_tableau(card: Card, pile: Sequence[Card]) -> bool:
        """
        检查牌 (或一段牌的最底张) 能否放到牌列上

        空牌列只接受 K；否则须颜色不同且点数小 1
        """
        if not pile:
            return card.rank == Rank.KING
        top = pile[-1]
        return card.is_red != top.is_red and RuleEngine.is_one_above(top, card)

    @staticmethod
    def resolve_source_cards(
        player: 'PlayerState',
        move: Move,
    ) -> Optional[Tuple[Card, ...]]:
        """
        根据走法的来源取出实际要移动的牌

        Returns:
            牌元组；来源非法 (越界、为空、含背面牌) 时返回 None
        """
        count = len(move.cards)
        if count == 0:
            return None

        source = move.source
        if source.type == PileType.TABLEAU:
            cards = player.source_cards(source, count)
            if cards is None or any(not c.face_up for c in cards):
                return None
            return cards

        # stock / waste / foundation 只能取顶上一张
        if count != 1:
            return None
        return player.source_cards(source)

    @staticmethod
    def is_valid_move(move: Move, state: 'GameState') -> bool:
        """
        验证走法是否合法

        依次检查:
        1. 牌库翻完次数上限
        2. 牌库与废牌堆只能成对出现 (翻牌)
        3. 来源牌 (须与 move.cards 一致)
        4. 目标为收牌区
        5. 目标为牌列
        6. 目标为废牌堆 (翻牌，前面已校验)

        Args:
            move: 待验证走法
            state: 当前游戏状态 (以 current_player 为行动方)

        Returns:
            是否合法
        """
        player = state.acting_player
        source, target = move.source, move.target

        if source.type == PileType.STOCK and player.stock_passes >= state.max_stock_passes:
            return False

        # 牌库只能翻到废牌堆，废牌堆也只接收牌库的牌
        if (source.type == PileType.STOCK) != (target.type == PileType.WASTE):
            return False

        source_cards = RuleEngine.resolve_source_cards(player, move)
        if source_cards is None:
            return False
        if [c.key for c in source_cards] != [c.key for c in move.cards]:
            return False

        if target.type == PileType.FOUNDATION:
            pile = player.pile(target)
            if pile is None or len(source_cards) != 1:
                return False
            return RuleEngine.can_place_on_foundation(source_cards[0], pile)

        if target.type == PileType.TABLEAU:
            if source == target:
                return False
            pile = player.pile(target)
            if pile is None:
                return False
            return RuleEngine.can_place_on_tableau(source_cards[0], pile)

        if target.type == PileType.WASTE:
            return player.pile(target) is not None

        return False

    @staticmethod
    def is_complete(player: 'PlayerState') -> bool:
        """四个收牌区是否都已收满 13 张"""
        return len(player.foundations) == FOUNDATION_COUNT and all(
            len(pile) == CARDS_PER_SUIT for pile in player.foundations
        )
