"""测试共用的牌面构造工具"""
from typing import Sequence

import pytest

from core.cards import CARDS_PER_SUIT, SUITS, create_deck, str_to_cards
from core.moves import FOUNDATION_COUNT, TABLEAU_COUNT
from core.state import GameState, PlayerId, PlayerState


def build_player(
    stock: str = "",
    waste: str = "",
    foundations: Sequence[str] = (),
    tableau: Sequence[str] = (),
    stock_passes: int = 0,
) -> PlayerState:
    """
    用文本描述构造牌面

    每个牌堆是空格分隔的牌 (自下而上)，"?" 后缀表示背面朝上；
    未给出的收牌区/牌列为空
    """
    piles_f = [str_to_cards(s) for s in foundations]
    piles_f += [()] * (FOUNDATION_COUNT - len(piles_f))
    piles_t = [str_to_cards(s) for s in tableau]
    piles_t += [()] * (TABLEAU_COUNT - len(piles_t))
    return PlayerState(
        stock=str_to_cards(stock),
        waste=str_to_cards(waste),
        foundations=tuple(piles_f),
        tableau=tuple(piles_t),
        stock_passes=stock_passes,
    )


def full_suit(suit_index: int, count: int = CARDS_PER_SUIT):
    """某花色从 A 起的 count 张 (正面朝上)"""
    start = suit_index * CARDS_PER_SUIT
    return tuple(c.flipped(True) for c in create_deck()[start:start + count])


def build_state(player1: PlayerState, player2: PlayerState = None, **kwargs) -> GameState:
    return GameState(player1=player1, player2=player2 or PlayerState(), **kwargs)


def near_won_player() -> PlayerState:
    """只差黑桃 K 就收满的牌面 (K 在第 0 列)"""
    foundations = tuple(full_suit(i) for i in range(len(SUITS) - 1))
    foundations += (full_suit(len(SUITS) - 1, CARDS_PER_SUIT - 1),)
    return PlayerState(
        foundations=foundations,
        tableau=(str_to_cards("Ks"),) + ((),) * (TABLEAU_COUNT - 1),
    )


@pytest.fixture
def make_player():
    return build_player


@pytest.fixture
def make_state():
    return build_state


@pytest.fixture
def near_won_state():
    return build_state(near_won_player(), current_player=PlayerId.ONE)
