"""
Performance Benchmark
=====================

Measures headless simulation throughput. Sessions run on a manual clock
that jumps straight to the next timer deadline, steered by a greedy
autopilot that heads for the food and avoids immediate collisions.

Usage:
    python -m tools.benchmark_speed [--sessions N] [--ticks T] [--mode MODE]
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import List, Optional

import numpy as np

from snake_boy.core.collaborators import InputQueue
from snake_boy.core.config_loader import load_config, GameConfig
from snake_boy.core.game import GameMode, GameStateMachine, GameStatus
from snake_boy.core.grid import Direction, Position
from snake_boy.core.scheduler import ManualClock
from snake_boy.core.storage import MemoryHighScoreStore


def choose_direction(game: GameStateMachine, rng: np.random.Generator) -> Optional[Direction]:
    """
    Pick a safe direction that closes the Manhattan distance to the food.

    Ties are broken at random. Returns None when every turn collides.
    """
    snake = game.snake
    grid = snake.grid
    body = set(snake.body[:-1])
    obstacles = game.obstacles
    target: Optional[Position] = game.food.position

    candidates: List[Direction] = []
    scores: List[int] = []
    for direction in Direction:
        if snake.direction.is_opposite(direction):
            continue
        cell = snake.head.offset(direction)
        if not grid.contains(cell) or cell in body or cell in obstacles:
            continue
        candidates.append(direction)
        if target is None:
            scores.append(0)
        else:
            scores.append(abs(cell.x - target.x) + abs(cell.y - target.y))

    if not candidates:
        return None

    best = min(scores)
    best_directions = [d for d, s in zip(candidates, scores) if s == best]
    return best_directions[int(rng.integers(len(best_directions)))]


def benchmark_sessions(
    num_sessions: int = 20,
    max_ticks: int = 2000,
    mode: GameMode = GameMode.CLASSIC,
    seed: int = 42,
    config: Optional[GameConfig] = None
) -> dict:
    """
    Benchmark full autopilot sessions.

    Args:
        num_sessions: Sessions to play.
        max_ticks: Tick cap per session.
        mode: Game mode for every session.
        seed: Random seed.
        config: Game configuration. Loaded if None.

    Returns:
        Dict with timing and score results.
    """
    if config is None:
        config = load_config()

    rng = np.random.default_rng(seed)
    scores = []
    levels = []
    total_ticks = 0

    start = time.perf_counter()
    for session in range(num_sessions):
        clock = ManualClock()
        input_queue = InputQueue()
        game = GameStateMachine(
            config=config,
            clock=clock,
            input_source=input_queue,
            store=MemoryHighScoreStore(),
            seed=seed + session,
        )
        game.set_mode(mode)
        game.start()

        ticks = 0
        while game.status is not GameStatus.GAMEOVER and ticks < max_ticks:
            if game.status is GameStatus.PLAYING:
                direction = choose_direction(game, rng)
                if direction is not None:
                    input_queue.queue_direction(direction)

            deadline = game.scheduler.next_deadline()
            if deadline is None:
                break
            clock.set(max(clock.now, deadline))
            if game.scheduler.is_pending("tick") and game.scheduler.deadline("tick") <= clock.now:
                ticks += 1
            game.update()

        total_ticks += ticks
        scores.append(game.score)
        levels.append(game.levels.level)

    elapsed = time.perf_counter() - start

    return {
        "mode": mode.name,
        "sessions": num_sessions,
        "ticks": total_ticks,
        "elapsed_seconds": elapsed,
        "ticks_per_second": total_ticks / elapsed if elapsed > 0 else 0.0,
        "ms_per_tick": (elapsed * 1000) / total_ticks if total_ticks else 0.0,
        "mean_score": float(np.mean(scores)) if scores else 0.0,
        "max_score": int(np.max(scores)) if scores else 0,
        "mean_level": float(np.mean(levels)) if levels else 0.0,
    }


def run_all_benchmarks(
    modes: List[GameMode],
    sessions: int,
    ticks: int,
    seed: int
) -> List[dict]:
    """Run benchmarks for each mode and print a summary."""
    print("=" * 60)
    print("SNAKE BOY SIMULATION BENCHMARK")
    print("=" * 60)
    print()

    results = []
    for mode in modes:
        print(f"Benchmarking {mode.name} ({sessions} sessions)...")
        result = benchmark_sessions(sessions, ticks, mode, seed)
        results.append(result)
        print(f"  Ticks/sec:  {result['ticks_per_second']:.1f}")
        print(f"  ms/tick:    {result['ms_per_tick']:.3f}")
        print(f"  Mean score: {result['mean_score']:.1f}")
        print()

    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print()
    print(f"{'Mode':<14} {'Ticks':>8} {'Ticks/s':>12} {'Score':>8} {'Level':>7}")
    print("-" * 53)
    for r in results:
        print(
            f"{r['mode']:<14} {r['ticks']:>8} {r['ticks_per_second']:>12.1f} "
            f"{r['mean_score']:>8.1f} {r['mean_level']:>7.2f}"
        )

    return results


def main():
    parser = argparse.ArgumentParser(description="Benchmark Snake Boy simulation performance")
    parser.add_argument("--sessions", type=int, default=20, help="Sessions per mode")
    parser.add_argument("--ticks", type=int, default=2000, help="Tick cap per session")
    parser.add_argument("--mode", choices=[m.name.lower() for m in GameMode], nargs="+",
                        default=[m.name.lower() for m in GameMode], help="Modes to benchmark")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--quick", action="store_true", help="Quick benchmark (fewer sessions)")

    args = parser.parse_args()

    sessions = 3 if args.quick else args.sessions
    modes = [GameMode[name.upper()] for name in args.mode]

    run_all_benchmarks(modes, sessions, args.ticks, args.seed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
