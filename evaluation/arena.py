"""
对战竞技场

组织两名智能体的对局
"""
from typing import Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass
from collections import defaultdict
from itertools import permutations
import logging

from .evaluator import Agent

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """对局结果"""
    agents: Tuple[str, str]          # (玩家 1, 玩家 2)
    winner: Optional[str]            # 未分胜负 (截断) 时为 None
    leader: Optional[str]            # 收牌多者，平局为 None
    scores: Tuple[int, int]
    length: int
    stalled: bool
    seed: int
    winner_seat: Optional[int] = None  # 0 或 1
    leader_seat: Optional[int] = None


@dataclass
class TournamentResult:
    """锦标赛结果"""
    standings: Dict[str, Dict[str, float]]
    total_games: int
    matches: List[MatchResult]

    def get_ranking(self) -> List[Tuple[str, float]]:
        """获取排名 (按胜率，其次按平均收牌数)"""
        return sorted(
            [(name, stats["win_rate"]) for name, stats in self.standings.items()],
            key=lambda x: (x[1], self.standings[x[0]]["avg_score"]),
            reverse=True,
        )

    def __repr__(self) -> str:
        ranking = self.get_ranking()
        lines = [f"Tournament Results ({self.total_games} games):"]
        for i, (name, win_rate) in enumerate(ranking):
            lines.append(f"  {i+1}. {name}: {win_rate:.2%}")
        return "\n".join(lines)


class Arena:
    """
    对战竞技场

    组织智能体之间的对战
    """

    def __init__(self, env_fn: Callable):
        self.env_fn = env_fn

    def play_game(self, agents: List[Agent], seed: Optional[int] = None) -> MatchResult:
        """
        进行一局

        Args:
            agents: 2 个智能体 (依次为玩家 1、玩家 2)
            seed: 洗牌种子

        Returns:
            对局结果
        """
        assert len(agents) == 2

        env = self.env_fn()
        obs, info = env.reset(seed=seed)
        for agent in agents:
            agent.reset()

        done = False
        length = 0
        stalled = False

        while not done:
            current_idx = info["current_player"] - 1
            legal_moves = info["legal_moves"]

            move = agents[current_idx].act(obs, legal_moves)
            if move is None:
                stalled = True
                break

            obs, reward, terminated, truncated, info = env.step(move)
            done = terminated or truncated
            stalled = stalled or info.get("stalled", False)
            length += 1

        names = (agents[0].name, agents[1].name)
        progress = info["progress"]
        scores = (progress["player1"], progress["player2"])

        winner_seat = info["winner"] - 1 if "winner" in info else None
        leader_seat = None
        if scores[0] != scores[1]:
            leader_seat = 0 if scores[0] > scores[1] else 1

        winner = names[winner_seat] if winner_seat is not None else None
        leader = names[leader_seat] if leader_seat is not None else None

        result = MatchResult(
            agents=names,
            winner=winner,
            leader=leader,
            scores=scores,
            length=length,
            stalled=stalled,
            seed=env.state.shuffle_seed,
            winner_seat=winner_seat,
            leader_seat=leader_seat,
        )
        env.close()
        return result

    def play_match(
        self,
        agents: List[Agent],
        n_games: int = 1,
        seed: Optional[int] = None,
    ) -> List[MatchResult]:
        """
        进行多局

        Args:
            agents: 2 个智能体
            n_games: 对局数
            seed: 起始种子，第 i 局使用 seed + i (None 表示每局随机)

        Returns:
            对局结果列表
        """
        results = []
        for i in range(n_games):
            game_seed = seed + i if seed is not None else None
            results.append(self.play_game(agents, game_seed))
        return results

    def round_robin(
        self,
        agents: List[Agent],
        games_per_match: int = 10,
        seed: Optional[int] = None,
    ) -> TournamentResult:
        """
        循环赛

        每对智能体都以两种先后手顺序对战

        Args:
            agents: 智能体列表
            games_per_match: 每场比赛的对局数
            seed: 起始种子

        Returns:
            锦标赛结果
        """
        names = [agent.name for agent in agents]
        if len(set(names)) != len(names):
            raise ValueError(f"Agent names must be unique, got {names}")

        standings = {agent.name: defaultdict(float) for agent in agents}
        all_matches = []

        for i, j in permutations(range(len(agents)), 2):
            match_agents = [agents[i], agents[j]]
            results = self.play_match(match_agents, games_per_match, seed)
            all_matches.extend(results)

            for result in results:
                for seat, name in enumerate(result.agents):
                    standings[name]["games"] += 1
                    standings[name]["total_score"] += result.scores[seat]
                    if result.winner_seat == seat:
                        standings[name]["wins"] += 1
                    if result.winner_seat is None and result.leader_seat == seat:
                        standings[name]["leads"] += 1

        # 计算胜率
        for name, stats in standings.items():
            games = stats["games"]
            stats["win_rate"] = stats["wins"] / games if games > 0 else 0.0
            stats["avg_score"] = stats["total_score"] / games if games > 0 else 0.0

        logger.info(f"Round robin finished: {len(all_matches)} games, {len(agents)} agents")

        return TournamentResult(
            standings={name: dict(stats) for name, stats in standings.items()},
            total_games=len(all_matches),
            matches=all_matches,
        )
