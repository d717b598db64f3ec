"""
观察空间编码

将对局状态转换为 numpy 特征，并把走法与固定索引相互转换
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from core.cards import DECK_SIZE, CARDS_PER_SUIT, cards_to_array
from core.moves import FOUNDATION_COUNT, TABLEAU_COUNT, Move, MoveGenerator, PileRef, PileType
from core.state import GameState, PlayerId, PlayerState


# 一段可移动牌的最大长度 (K 到 A)
MAX_RUN_LENGTH = CARDS_PER_SUIT

# 走法模板: (来源类型, 来源序号, 张数, 目标类型, 目标序号)
MoveKey = Tuple[PileType, int, int, PileType, int]


@dataclass
class Observation:
    """
    结构化观测

    Attributes:
        stock: 牌库剩余张数 (归一化) (1,)
        waste_top: 废牌堆顶牌 (52,)
        waste: 废牌堆全部牌 (52,)
        foundations: 各收牌区的牌 (4, 52)
        tableau: 各牌列翻开的牌 (7, 52)
        tableau_hidden: 各牌列背面牌数 (7,)
        scores: [自己, 对手] 收牌张数 (归一化) (2,)
        stock_passes_left: 剩余可翻空次数 (1,)
        position: 玩家位置 one-hot (2,)
        legal_moves: 合法走法列表
        is_acting: 观测方是否为当前行动玩家
    """
    stock: np.ndarray
    waste_top: np.ndarray
    waste: np.ndarray
    foundations: np.ndarray
    tableau: np.ndarray
    tableau_hidden: np.ndarray
    scores: np.ndarray
    stock_passes_left: np.ndarray
    position: np.ndarray
    legal_moves: List[Move]
    is_acting: bool

    def to_dict(self) -> Dict[str, np.ndarray]:
        """转换为字典格式"""
        return {
            "stock": self.stock,
            "waste_top": self.waste_top,
            "waste": self.waste,
            "foundations": self.foundations,
            "tableau": self.tableau,
            "tableau_hidden": self.tableau_hidden,
            "scores": self.scores,
            "stock_passes_left": self.stock_passes_left,
            "position": self.position,
        }

    def to_flat_array(self) -> np.ndarray:
        """
        展平为单一向量

        特征维度:
        - stock: 1
        - waste_top / waste: 52 * 2
        - foundations: 4 * 52
        - tableau: 7 * 52
        - tableau_hidden: 7
        - scores: 2
        - stock_passes_left: 1
        - position: 2
        """
        return np.concatenate([v.flatten() for v in self.to_dict().values()])


class ObservationBuilder:
    """
    观测构建器

    负责将 GameState 转换为 Observation
    """

    def __init__(self, include_legal_moves: bool = True):
        """
        Args:
            include_legal_moves: 是否生成合法走法 (仅对行动方有意义)
        """
        self.include_legal_moves = include_legal_moves

    def build(self, state: GameState, perspective: Optional[PlayerId] = None) -> Observation:
        """
        从对局状态构建观测

        Args:
            state: 对局状态
            perspective: 视角玩家 (默认为当前玩家)

        Returns:
            Observation 对象
        """
        if perspective is None:
            perspective = state.current_player

        player = state.get_player(perspective)
        opponent = state.get_player(perspective.other)
        is_acting = perspective == state.current_player

        legal_moves: List[Move] = []
        if self.include_legal_moves and is_acting and not state.is_finished:
            legal_moves = MoveGenerator(state).generate_all()

        return Observation(
            stock=np.array([len(player.stock) / DECK_SIZE], dtype=np.float32),
            waste_top=cards_to_array(player.waste[-1:]),
            waste=cards_to_array(player.waste),
            foundations=self._encode_piles(player.foundations),
            tableau=self._encode_piles(player.tableau, face_up_only=True),
            tableau_hidden=self._encode_hidden(player),
            scores=np.array([player.score / DECK_SIZE, opponent.score / DECK_SIZE], dtype=np.float32),
            stock_passes_left=self._encode_passes_left(state, player),
            position=self._encode_position(perspective),
            legal_moves=legal_moves,
            is_acting=is_acting,
        )

    def _encode_piles(self, piles, face_up_only: bool = False) -> np.ndarray:
        result = np.zeros((len(piles), DECK_SIZE), dtype=np.float32)
        for i, pile in enumerate(piles):
            cards = [c for c in pile if c.face_up] if face_up_only else pile
            result[i] = cards_to_array(cards)
        return result

    def _encode_hidden(self, player: PlayerState) -> np.ndarray:
        """各牌列背面朝上的张数"""
        return np.array(
            [sum(1 for c in pile if not c.face_up) for pile in player.tableau],
            dtype=np.float32,
        )

    def _encode_passes_left(self, state: GameState, player: PlayerState) -> np.ndarray:
        left = max(0, state.max_stock_passes - player.stock_passes)
        return np.array([left], dtype=np.float32)

    def _encode_position(self, player_id: PlayerId) -> np.ndarray:
        result = np.zeros(2, dtype=np.float32)
        result[int(player_id) - 1] = 1
        return result


class MoveEncoder:
    """
    走法编码器

    将 Move 与固定索引相互转换。索引只描述 (来源, 张数, 目标)，
    具体的牌在解码时从行动方牌面取出
    """

    def __init__(self):
        self._key_to_idx: Dict[MoveKey, int] = {}
        self._idx_to_key: List[MoveKey] = []
        self._build_move_space()

    def _add(self, key: MoveKey):
        self._key_to_idx[key] = len(self._idx_to_key)
        self._idx_to_key.append(key)

    def _build_move_space(self):
        """
        构建完整走法空间

        - 翻牌: 1
        - 废牌 → 收牌区/牌列: 4 + 7
        - 牌列 (1..13 张) → 收牌区 (仅 1 张) / 其他牌列
        - 收牌区 → 其他收牌区/牌列
        """
        self._add((PileType.STOCK, 0, 1, PileType.WASTE, 0))

        for f in range(FOUNDATION_COUNT):
            self._add((PileType.WASTE, 0, 1, PileType.FOUNDATION, f))
        for t in range(TABLEAU_COUNT):
            self._add((PileType.WASTE, 0, 1, PileType.TABLEAU, t))

        for s in range(TABLEAU_COUNT):
            for count in range(1, MAX_RUN_LENGTH + 1):
                if count == 1:
                    for f in range(FOUNDATION_COUNT):
                        self._add((PileType.TABLEAU, s, count, PileType.FOUNDATION, f))
                for t in range(TABLEAU_COUNT):
                    if t != s:
                        self._add((PileType.TABLEAU, s, count, PileType.TABLEAU, t))

        for s in range(FOUNDATION_COUNT):
            for f in range(FOUNDATION_COUNT):
                if f != s:
                    self._add((PileType.FOUNDATION, s, 1, PileType.FOUNDATION, f))
            for t in range(TABLEAU_COUNT):
                self._add((PileType.FOUNDATION, s, 1, PileType.TABLEAU, t))

    @property
    def num_moves(self) -> int:
        """走法空间大小"""
        return len(self._idx_to_key)

    @staticmethod
    def move_key(move: Move) -> MoveKey:
        return (move.source.type, move.source.index, len(move.cards), move.target.type, move.target.index)

    def encode(self, move: Move) -> int:
        """
        将 Move 编码为索引

        Returns:
            走法索引，未找到返回 -1
        """
        return self._key_to_idx.get(self.move_key(move), -1)

    def decode(self, idx: int, state: GameState) -> Optional[Move]:
        """
        将索引解码为 Move

        Args:
            idx: 走法索引
            state: 对局状态 (从行动方牌面取牌)

        Returns:
            Move 对象；索引越界或来源牌不足时返回 None
        """
        if not 0 <= idx < self.num_moves:
            return None
        source_type, source_index, count, target_type, target_index = self._idx_to_key[idx]
        source = PileRef(source_type, source_index)
        cards = state.acting_player.source_cards(source, count)
        if cards is None:
            return None
        return Move.create(source, PileRef(target_type, target_index), cards)

    def get_legal_move_indices(self, legal_moves: List[Move]) -> List[int]:
        """合法走法的索引列表"""
        indices = []
        for move in legal_moves:
            idx = self.encode(move)
            if idx >= 0:
                indices.append(idx)
        return indices

    def build_legal_mask(self, legal_moves: List[Move]) -> np.ndarray:
        """
        构建合法走法掩码

        Returns:
            (num_moves,) 数组
        """
        mask = np.zeros(self.num_moves, dtype=np.float32)
        for idx in self.get_legal_move_indices(legal_moves):
            mask[idx] = 1
        return mask


# 全局单例
_move_encoder: Optional[MoveEncoder] = None


def get_move_encoder() -> MoveEncoder:
    """获取全局走法编码器"""
    global _move_encoder
    if _move_encoder is None:
        _move_encoder = MoveEncoder()
    return _move_encoder
