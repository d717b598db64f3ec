"""环境层测试"""
import pytest
import numpy as np

from core.cards import str_to_cards
from core.moves import STOCK, WASTE, Move, foundation, tableau
from core.state import GameState, PlayerId, PlayerState
from env import CompetitiveSolitaireEnv, MultiAgentSolitaireEnv, make_env


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestCompetitiveSolitaireEnv:
    """CompetitiveSolitaireEnv 测试"""

    def test_reset(self):
        env = CompetitiveSolitaireEnv()
        obs, info = env.reset(seed=42)

        assert "tableau" in obs
        assert obs["tableau"].shape == (7, 52)
        assert info["current_player"] == 1
        assert info["step_count"] == 0
        assert info["legal_moves"]
        assert info["legal_move_mask"].sum() == len(info["legal_moves"])
        assert env.state.shuffle_seed == 42
        assert env.state.start_time is not None

    def test_reset_seed_from_constructor(self):
        env = CompetitiveSolitaireEnv(seed=9)
        env.reset()
        assert env.state.shuffle_seed == 9

    def test_step_alternates_players(self):
        env = CompetitiveSolitaireEnv(clock=FakeClock())
        env.reset(seed=42)

        draw = Move.stock_draw(env.state.player1)
        obs, reward, terminated, truncated, info = env.step(draw)

        assert not terminated
        assert not truncated
        assert info["current_player"] == 2
        assert info["step_count"] == 1
        assert len(env.state.player1.stock) == 23
        assert len(env.state.player2.stock) == 24

    def test_step_with_index(self):
        env = CompetitiveSolitaireEnv()
        _, info = env.reset(seed=42)

        idx = info["legal_move_indices"][0]
        _, _, _, _, info = env.step(idx)
        assert "error" not in info
        assert info["current_player"] == 2

    def test_step_with_numpy_index(self):
        env = CompetitiveSolitaireEnv()
        _, info = env.reset(seed=42)
        _, _, _, _, info = env.step(np.int64(info["legal_move_indices"][0]))
        assert "error" not in info

    def test_invalid_move(self):
        env = CompetitiveSolitaireEnv(clock=FakeClock())
        env.reset(seed=42)
        before = env.state

        bad = Move.create(tableau(0), WASTE, env.state.player1.tableau[0][-1:])
        _, reward, terminated, truncated, info = env.step(bad)

        assert reward == -1.0
        assert info["error"] == "Invalid move"
        assert info["current_player"] == 1
        assert not terminated and not truncated
        assert env.state.player1 == before.player1

    def test_undecodable_index(self):
        env = CompetitiveSolitaireEnv()
        env.reset(seed=42)
        # 废牌堆为空，废牌 → 收牌区无法解码
        _, reward, _, _, info = env.step(1)
        assert info["error"] == "Invalid move"

    def test_bad_actions_raise(self):
        env = CompetitiveSolitaireEnv()
        env.reset(seed=42)
        with pytest.raises(ValueError):
            env.step(10_000)
        with pytest.raises(ValueError):
            env.step("draw")

    def test_step_before_reset(self):
        env = CompetitiveSolitaireEnv()
        with pytest.raises(RuntimeError):
            env.step(0)
        with pytest.raises(RuntimeError):
            env.tick()

    def test_win(self, near_won_state):
        clock = FakeClock(50.0)
        env = CompetitiveSolitaireEnv(clock=clock)
        env.reset(options={"state": near_won_state})

        clock.now = 80.0
        move = Move.create(tableau(0), foundation(3), str_to_cards("Ks"))
        obs, reward, terminated, truncated, info = env.step(move)

        assert terminated
        assert not truncated
        assert info["winner"] == 1
        assert info["duration"] == 30.0
        assert info["legal_moves"] == []
        assert reward == pytest.approx(1.0 + 0.02)
        assert env.state.winner == PlayerId.ONE
        assert env.state.end_time == 80.0
        assert env.state.current_player == PlayerId.ONE

    def test_no_moves_after_win(self, near_won_state):
        env = CompetitiveSolitaireEnv()
        env.reset(options={"state": near_won_state})
        env.step(Move.create(tableau(0), foundation(3), str_to_cards("Ks")))

        with pytest.raises(RuntimeError):
            env.step(0)

    def test_stalled_opponent(self, make_player, make_state):
        env = CompetitiveSolitaireEnv()
        env.reset(options={"state": make_state(make_player(stock="5c? 6c?"), PlayerState())})

        _, _, terminated, truncated, info = env.step(Move.stock_draw(env.state.player1))
        assert not terminated
        assert truncated
        assert info["stalled"]

    def test_max_steps(self):
        env = CompetitiveSolitaireEnv(max_steps=1)
        env.reset(seed=42)
        _, _, terminated, truncated, _ = env.step(Move.stock_draw(env.state.player1))
        assert not terminated
        assert truncated

    def test_timers(self):
        clock = FakeClock(100.0)
        env = CompetitiveSolitaireEnv(clock=clock)
        env.reset(seed=42)

        clock.now = 103.0
        state = env.tick()
        assert state.player1.timer == 3.0

        clock.now = 105.0
        _, _, _, _, info = env.step(Move.stock_draw(env.state.player1))
        assert info["timers"] == {"player1": 5.0, "player2": 0.0}
        assert env.state.player1.move_log[-1].timestamp == 105.0

        clock.now = 109.0
        env.tick()
        assert env.state.player2.timer == 9.0
        assert env.state.player1.timer == 5.0

    def test_render(self):
        env = CompetitiveSolitaireEnv(render_mode="ansi")
        env.reset(seed=42)
        text = env.render()
        assert "Player 1" in text
        assert "Player 2" in text
        assert "Stock: 24" in text

    def test_render_none(self):
        env = CompetitiveSolitaireEnv()
        env.reset(seed=42)
        assert env.render() is None

    def test_sample_action(self):
        env = CompetitiveSolitaireEnv()
        _, info = env.reset(seed=42)
        assert env.sample_action() in info["legal_moves"]

    def test_spaces(self):
        env = CompetitiveSolitaireEnv()
        obs, _ = env.reset(seed=42)
        assert env.action_space.n == 626
        assert env.observation_space.contains(obs)

    def test_play_random_game(self):
        env = CompetitiveSolitaireEnv(max_steps=200)
        _, info = env.reset(seed=7)

        done = False
        steps = 0
        while not done:
            move = env.sample_action()
            assert move is not None
            _, _, terminated, truncated, info = env.step(move)
            done = terminated or truncated
            steps += 1

        assert steps <= 200


class TestMultiAgentEnv:
    """MultiAgentSolitaireEnv 测试"""

    def test_reset(self):
        env = MultiAgentSolitaireEnv()
        obs, info = env.reset(seed=42)
        assert set(obs) == {"player1", "player2"}
        assert obs["player1"]["position"].tolist() == [1.0, 0.0]

    def test_step(self):
        env = MultiAgentSolitaireEnv()
        env.reset(seed=42)
        obs, rewards, terminated, truncated, info = env.step(Move.stock_draw(env.state.player1))
        assert set(rewards) == {"player1", "player2"}
        assert rewards == {"player1": 0.0, "player2": 0.0}

    def test_invalid_penalizes_mover(self):
        env = MultiAgentSolitaireEnv()
        env.reset(seed=42)
        bad = Move.create(STOCK, foundation(0), env.state.player1.stock[-1:])
        _, rewards, _, _, info = env.step(bad)
        assert rewards == {"player1": -1.0, "player2": 0.0}

    def test_make_env(self):
        assert isinstance(make_env(multi_agent=True), MultiAgentSolitaireEnv)
        assert type(make_env()) is CompetitiveSolitaireEnv


class TestArena:
    """Arena 测试"""

    def test_play_game(self):
        from evaluation import Arena, RandomAgent

        arena = Arena(lambda: CompetitiveSolitaireEnv(max_steps=30))
        agents = [RandomAgent("a", seed=0), RandomAgent("b", seed=1)]
        result = arena.play_game(agents, seed=42)

        assert result.agents == ("a", "b")
        assert result.seed == 42
        assert 0 < result.length <= 30
        assert result.winner is None
        assert len(result.scores) == 2

    def test_play_match_seeds(self):
        from evaluation import Arena, GreedyAgent

        arena = Arena(lambda: CompetitiveSolitaireEnv(max_steps=10))
        results = arena.play_match([GreedyAgent("x"), GreedyAgent("y")], n_games=3, seed=100)
        assert [r.seed for r in results] == [100, 101, 102]

    def test_round_robin(self):
        from evaluation import Arena, GreedyAgent, RandomAgent

        arena = Arena(lambda: CompetitiveSolitaireEnv(max_steps=20))
        agents = [GreedyAgent("greedy"), RandomAgent("random", seed=0)]
        result = arena.round_robin(agents, games_per_match=1, seed=5)

        assert result.total_games == 2
        assert set(result.standings) == {"greedy", "random"}
        for stats in result.standings.values():
            assert stats["games"] == 2
        assert len(result.get_ranking()) == 2
        assert "Tournament Results" in repr(result)


class TestRewardCalculator:
    """RewardCalculator 测试"""

    def test_sparse_no_winner(self):
        from env.reward import create_reward_calculator

        calc = create_reward_calculator("sparse")
        assert calc.compute(GameState.initial(seed=1)) == 0.0

    def test_sparse_winner(self):
        from env.reward import RewardType, create_reward_calculator

        calc = create_reward_calculator("sparse")
        assert calc.config.reward_type == RewardType.SPARSE

        state = GameState.initial(seed=1).with_winner(PlayerId.TWO, 10.0)
        assert calc.compute(state, player=PlayerId.TWO) == 1.0
        assert calc.compute(state, player=PlayerId.ONE) == -1.0

    def test_shaped_card_gain(self, make_player, make_state):
        from env.reward import create_reward_calculator

        calc = create_reward_calculator("shaped", card_reward=0.1)
        prev = make_state(make_player(waste="Ah"))
        state = prev.with_move(Move.create(WASTE, foundation(0), str_to_cards("Ah")), 1.0)
        assert calc.compute(state, prev, PlayerId.ONE) == pytest.approx(0.1)
        assert calc.compute(state, prev, PlayerId.TWO) == 0.0


class TestArenaSeats:
    """Arena 座位统计测试"""

    def test_winner_seat_with_same_names(self, near_won_state):
        from evaluation import Arena, GreedyAgent

        class PresetEnv(CompetitiveSolitaireEnv):
            def reset(self, *, seed=None, options=None):
                return super().reset(seed=seed, options={"state": near_won_state})

        arena = Arena(PresetEnv)
        result = arena.play_game([GreedyAgent(), GreedyAgent()])

        assert result.winner_seat == 0
        assert result.leader_seat == 0
        assert result.winner == "greedy"
        assert result.length == 1

    def test_truncated_game_has_no_winner_seat(self):
        from evaluation import Arena, RandomAgent

        arena = Arena(lambda: CompetitiveSolitaireEnv(max_steps=4))
        result = arena.play_game([RandomAgent("a", seed=0), RandomAgent("b", seed=1)], seed=3)
        assert result.winner_seat is None

    def test_round_robin_rejects_duplicate_names(self):
        from evaluation import Arena, GreedyAgent

        arena = Arena(lambda: CompetitiveSolitaireEnv(max_steps=5))
        with pytest.raises(ValueError):
            arena.round_robin([GreedyAgent(), GreedyAgent()], games_per_match=1)
