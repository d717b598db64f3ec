"""
Core Layer - 纯游戏逻辑 (无 ML 依赖，无 I/O)

Modules:
    cards: 牌定义、建牌、确定性洗牌与编码
    moves: 牌堆引用、走法与走法生成
    rules: 规则引擎
    state: 对局状态、发牌、走法执行与进度查询
"""
from .cards import (
    Suit,
    Rank,
    Card,
    SUITS,
    RANKS,
    CARDS_PER_SUIT,
    DECK_SIZE,
    SeededRandom,
    create_deck,
    seeded_shuffle,
    choose_seed,
    card_index,
    cards_to_array,
    array_to_cards,
    card_to_str,
    cards_to_str,
    str_to_card,
    str_to_cards,
)

from .moves import (
    PileType,
    PileRef,
    Move,
    MoveGenerator,
    FOUNDATION_COUNT,
    TABLEAU_COUNT,
)

from .rules import RuleEngine

from .state import (
    PlayerId,
    GameConfig,
    PlayerState,
    GameState,
    initialize_game,
    is_valid_move,
    make_move,
    check_win_condition,
    is_game_over,
    get_player_score,
    get_game_progress,
    get_player_time,
    update_player_timer,
    format_time,
)

__all__ = [
    # cards
    "Suit",
    "Rank",
    "Card",
    "SUITS",
    "RANKS",
    "CARDS_PER_SUIT",
    "DECK_SIZE",
    "SeededRandom",
    "create_deck",
    "seeded_shuffle",
    "choose_seed",
    "card_index",
    "cards_to_array",
    "array_to_cards",
    "card_to_str",
    "cards_to_str",
    "str_to_card",
    "str_to_cards",
    # moves
    "PileType",
    "PileRef",
    "Move",
    "MoveGenerator",
    "FOUNDATION_COUNT",
    "TABLEAU_COUNT",
    # rules
    "RuleEngine",
    # state
    "PlayerId",
    "GameConfig",
    "PlayerState",
    "GameState",
    "initialize_game",
    "is_valid_move",
    "make_move",
    "check_win_condition",
    "is_game_over",
    "get_player_score",
    "get_game_progress",
    "get_player_time",
    "update_player_timer",
    "format_time",
]
