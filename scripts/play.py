#!/usr/bin/env python3
"""
对战脚本

Usage:
    python scripts/play.py --mode watch                 # 观看两个智能体对战
    python scripts/play.py --mode play --agent greedy   # 与智能体对战
    python scripts/play.py --mode watch --seed 42 --games 3
"""
import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from core.cards import cards_to_str
from core.moves import Move, PileType
from core.state import format_time
from env import CompetitiveSolitaireEnv
from evaluation import Agent, GreedyAgent, RandomAgent

logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Competitive Solitaire Play")

    parser.add_argument(
        "--mode",
        type=str,
        default="watch",
        choices=["watch", "play"],
        help="Mode: watch two agents or play against one",
    )
    parser.add_argument(
        "--agent",
        type=str,
        default="greedy",
        choices=["random", "greedy"],
        help="Agent type",
    )
    parser.add_argument("--games", type=int, default=1, help="Number of games")
    parser.add_argument("--seed", type=int, default=None, help="Shuffle seed of the first game")
    parser.add_argument("--delay", type=float, default=0.0, help="Delay between moves")
    parser.add_argument("--max-steps", type=int, default=1000, help="Truncate a match after this many moves")

    # 对局参数
    parser.add_argument("--max-stock-passes", type=int, default=3)
    parser.add_argument("--cards-per-draw", type=int, default=1, choices=[1, 3])

    parser.add_argument("--log-level", type=str, default="INFO")

    return parser.parse_args()


def pile_to_str(pile_type: PileType, index: int) -> str:
    if pile_type in (PileType.STOCK, PileType.WASTE):
        return pile_type.value
    return f"{pile_type.value} {index}"


def move_to_str(move: Move) -> str:
    """走法转字符串"""
    if move.is_stock_draw:
        return "draw from stock"
    return (
        f"{pile_to_str(move.source.type, move.source.index)} -> "
        f"{pile_to_str(move.target.type, move.target.index)}: "
        f"{cards_to_str(move.cards)}"
    )


def create_agent(kind: str, name: str, seed: Optional[int] = None) -> Agent:
    if kind == "random":
        return RandomAgent(name, seed=seed)
    return GreedyAgent(name)


def make_env(args) -> CompetitiveSolitaireEnv:
    return CompetitiveSolitaireEnv(
        render_mode="ansi",
        max_stock_passes=args.max_stock_passes,
        cards_per_draw=args.cards_per_draw,
        max_steps=args.max_steps,
    )


def game_seed(args, game_idx: int) -> Optional[int]:
    return args.seed + game_idx if args.seed is not None else None


def report(env: CompetitiveSolitaireEnv, info: dict, names: List[str]):
    """打印对局结果"""
    state = env.state
    progress = info["progress"]

    print("\n" + "=" * 60)
    if "winner" in info:
        print(f"游戏结束! 胜者: {names[info['winner'] - 1]}")
        print(f"用时: {format_time(info['duration'])}")
    else:
        print("对局未分胜负")
    print(f"收牌: {names[0]} {progress['player1']} / {names[1]} {progress['player2']}")
    print(f"种子: {state.shuffle_seed}  总步数: {info['step_count']}")
    print("=" * 60)


def watch_game(args):
    """观看智能体对战"""
    env = make_env(args)
    agents = [
        create_agent(args.agent, f"{args.agent}_1", args.seed),
        create_agent(args.agent, f"{args.agent}_2", None if args.seed is None else args.seed + 1),
    ]
    names = [a.name for a in agents]

    for game_idx in range(args.games):
        print(f"\n{'='*60}")
        print(f"Game {game_idx + 1}/{args.games}")
        print("=" * 60)

        obs, info = env.reset(seed=game_seed(args, game_idx))
        done = False

        while not done:
            print(env.render())

            current_idx = info["current_player"] - 1
            move = agents[current_idx].act(obs, info["legal_moves"])
            if move is None:
                break

            print(f"\n{agents[current_idx].name}: {move_to_str(move)}")

            obs, reward, terminated, truncated, info = env.step(move)
            done = terminated or truncated

            time.sleep(args.delay)

        print(env.render())
        report(env, info, names)


def choose_move(legal_moves: List[Move]) -> Optional[Move]:
    """让玩家在终端选择走法；输入 q 返回 None"""
    print("\n可选走法:")
    for i, move in enumerate(legal_moves):
        print(f"  {i}: {move_to_str(move)}")

    while True:
        choice = input("\n请选择走法编号 (或输入 'q' 退出): ").strip()
        if choice.lower() == 'q':
            return None
        try:
            idx = int(choice)
        except ValueError:
            print("请输入数字")
            continue
        if 0 <= idx < len(legal_moves):
            return legal_moves[idx]
        print("无效选择，请重试")


def play_game(args):
    """与智能体对战 (玩家为玩家 1)"""
    env = make_env(args)
    opponent = create_agent(args.agent, "AI", args.seed)
    names = ["你", opponent.name]

    for game_idx in range(args.games):
        print(f"\n{'='*60}")
        print(f"Game {game_idx + 1}/{args.games}")
        print("你是玩家 1!")
        print("=" * 60)

        obs, info = env.reset(seed=game_seed(args, game_idx))
        done = False

        while not done:
            print(env.render())
            legal_moves = info["legal_moves"]

            if info["current_player"] == 1:
                move = choose_move(legal_moves)
                if move is None:
                    print("退出游戏")
                    return
            else:
                move = opponent.act(obs, legal_moves)
                if move is None:
                    break
                print(f"\n{opponent.name}: {move_to_str(move)}")
                time.sleep(args.delay)

            obs, reward, terminated, truncated, info = env.step(move)
            done = terminated or truncated
            if "error" in info:
                logger.warning("Move rejected")

        print(env.render())
        report(env, info, names)


def main():
    args = parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(message)s",
    )

    print("=" * 60)
    print("Competitive Solitaire 双人竞速接龙")
    print("=" * 60)

    if args.mode == "watch":
        watch_game(args)
    elif args.mode == "play":
        play_game(args)


if __name__ == "__main__":
    main()
