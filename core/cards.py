"""
牌的定义与编码

标准 52 张扑克牌 (不含大小王):
- 花色: 红桃、方块、梅花、黑桃
- 点数: A, 2-10, J, Q, K
"""
from enum import Enum, IntEnum
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import math
import random

import numpy as np


class Suit(Enum):
    """花色定义 (顺序即建牌顺序)"""
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    @property
    def is_red(self) -> bool:
        return self in (Suit.HEARTS, Suit.DIAMONDS)

    @property
    def color(self) -> str:
        return "red" if self.is_red else "black"


class Rank(IntEnum):
    """点数定义 (A 最小，K 最大，不循环)"""
    ACE = 0
    TWO = 1
    THREE = 2
    FOUR = 3
    FIVE = 4
    SIX = 5
    SEVEN = 6
    EIGHT = 7
    NINE = 8
    TEN = 9
    JACK = 10
    QUEEN = 11
    KING = 12


SUITS: Tuple[Suit, ...] = tuple(Suit)
RANKS: Tuple[Rank, ...] = tuple(Rank)

CARDS_PER_SUIT = 13
DECK_SIZE = 52

# 点数到显示字符的映射
RANK_TO_STR: Dict[Rank, str] = {
    Rank.ACE: 'A', Rank.TWO: '2', Rank.THREE: '3', Rank.FOUR: '4',
    Rank.FIVE: '5', Rank.SIX: '6', Rank.SEVEN: '7', Rank.EIGHT: '8',
    Rank.NINE: '9', Rank.TEN: '10', Rank.JACK: 'J', Rank.QUEEN: 'Q',
    Rank.KING: 'K',
}

# 显示字符到点数的映射
STR_TO_RANK: Dict[str, Rank] = {v: k for k, v in RANK_TO_STR.items()}

# 花色缩写
SUIT_TO_STR: Dict[Suit, str] = {
    Suit.HEARTS: 'h', Suit.DIAMONDS: 'd', Suit.CLUBS: 'c', Suit.SPADES: 's',
}
STR_TO_SUIT: Dict[str, Suit] = {v: k for k, v in SUIT_TO_STR.items()}

SUIT_SYMBOLS: Dict[Suit, str] = {
    Suit.HEARTS: '♥', Suit.DIAMONDS: '♦', Suit.CLUBS: '♣', Suit.SPADES: '♠',
}

# 盖着的牌在文本编码中的后缀
HIDDEN_MARK = '?'

# 随机种子的取值上界
SEED_RANGE = 1_000_000


@dataclass(frozen=True, slots=True)
class Card:
    """
    不可变的牌

    牌没有独立 id，身份由 (花色, 点数) 决定；
    face_up 表示是否翻开。

    Attributes:
        suit: 花色
        rank: 点数
        face_up: 是否正面朝上
    """
    suit: Suit
    rank: Rank
    face_up: bool = False

    @property
    def key(self) -> Tuple[Suit, Rank]:
        """不含朝向的身份 (用于守恒检查与比较)"""
        return (self.suit, self.rank)

    @property
    def is_red(self) -> bool:
        return self.suit.is_red

    def flipped(self, face_up: bool = True) -> 'Card':
        """返回指定朝向的新牌"""
        if self.face_up == face_up:
            return self
        return Card(self.suit, self.rank, face_up)

    def __str__(self) -> str:
        return card_to_str(self)


def create_deck() -> Tuple[Card, ...]:
    """
    创建标准牌组

    花色优先 (红桃、方块、梅花、黑桃)，同花色内按 A..K 排列，全部背面朝上

    Returns:
        52 张牌
    """
    return tuple(Card(suit, rank) for suit in SUITS for rank in RANKS)


class SeededRandom:
    """
    线性确定性伪随机数生成器

    value = frac(sin(counter) * 10000)，每次调用 counter 加 1。
    仅用于复现发牌，不具备密码学意义。
    """

    def __init__(self, seed: int):
        self.counter = seed

    def random(self) -> float:
        """返回 [0, 1) 区间的伪随机数"""
        x = math.sin(self.counter) * 10000
        self.counter += 1
        return x - math.floor(x)


def seeded_shuffle(cards: Sequence[Card], seed: int) -> Tuple[Card, ...]:
    """
    确定性洗牌 (Fisher-Yates，从尾到头)

    Args:
        cards: 待洗的牌序列 (不会被修改)
        seed: 整数种子

    Returns:
        洗好的新序列
    """
    shuffled = list(cards)
    rng = SeededRandom(seed)
    for i in range(len(shuffled) - 1, 0, -1):
        j = math.floor(rng.random() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return tuple(shuffled)


def choose_seed(rng: Optional[random.Random] = None) -> int:
    """
    选择一局的洗牌种子

    唯一使用系统随机性的入口，测试可注入 rng 以获得确定结果
    """
    pick_rng = rng if rng is not None else random
    return pick_rng.randrange(SEED_RANGE)


def card_index(card: Card) -> int:
    """牌在标准牌组中的位置 (0..51)"""
    return SUITS.index(card.suit) * CARDS_PER_SUIT + int(card.rank)


def index_to_card(index: int, face_up: bool = False) -> Card:
    """card_index 的逆运算"""
    if not 0 <= index < DECK_SIZE:
        raise ValueError(f"Card index out of range: {index}")
    return Card(SUITS[index // CARDS_PER_SUIT], Rank(index % CARDS_PER_SUIT), face_up)


def cards_to_array(cards: Iterable[Card]) -> np.ndarray:
    """
    将牌集合转换为 52 维 one-hot 向量

    第 suit * 13 + rank 维为 1，忽略朝向

    Args:
        cards: 牌序列

    Returns:
        52 维 numpy 数组
    """
    array = np.zeros(DECK_SIZE, dtype=np.float32)
    for card in cards:
        array[card_index(card)] = 1
    return array


def array_to_cards(array: np.ndarray) -> List[Card]:
    """将 52 维数组转换回牌列表 (按标准牌组顺序，背面朝上)"""
    return [index_to_card(int(i)) for i in np.flatnonzero(array[:DECK_SIZE] > 0)]


def card_to_str(card: Card) -> str:
    """
    牌的文本编码

    如 "As", "10h", "Kd"；背面朝上的牌加 "?" 后缀，如 "Qc?"
    """
    text = RANK_TO_STR[card.rank] + SUIT_TO_STR[card.suit]
    if not card.face_up:
        text += HIDDEN_MARK
    return text


def cards_to_str(cards: Iterable[Card]) -> str:
    """牌序列转为空格分隔的文本"""
    return ' '.join(card_to_str(c) for c in cards)


def str_to_card(s: str) -> Card:
    """
    解析单张牌

    不带 "?" 后缀的牌视为正面朝上
    """
    text = s.strip()
    face_up = True
    if text.endswith(HIDDEN_MARK):
        face_up = False
        text = text[:-1]
    if len(text) < 2:
        raise ValueError(f"Invalid card: {s!r}")
    rank_str, suit_str = text[:-1].upper(), text[-1].lower()
    if rank_str not in STR_TO_RANK or suit_str not in STR_TO_SUIT:
        raise ValueError(f"Invalid card: {s!r}")
    return Card(STR_TO_SUIT[suit_str], STR_TO_RANK[rank_str], face_up)


def str_to_cards(s: str) -> Tuple[Card, ...]:
    """
    解析空格分隔的牌序列

    Args:
        s: 如 "Kc? 5h 4s"

    Returns:
        牌元组
    """
    return tuple(str_to_card(part) for part in s.split())


def card_display(card: Card) -> str:
    """终端显示用的字符串，如 "A♠"；背面朝上显示为 "--" """
    if not card.face_up:
        return "--"
    return RANK_TO_STR[card.rank] + SUIT_SYMBOLS[card.suit]
