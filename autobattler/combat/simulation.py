"""Monte Carlo Battle Simulation.

Runs many battles between the same two rosters to estimate win rates,
battle length and survivors.
"""

import logging
import random
import statistics
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..core.config import (
    DEFAULT_BATTLE_CONFIG,
    DEFAULT_DAMAGE_CONFIG,
    DEFAULT_GRID_CONFIG,
    BattleConfig,
    DamageConfig,
    GridConfig,
)
from ..core.settings import settings
from .battle_engine import BattleEngine, BattleResult, RosterEntry
from .spells import TeamSpell

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """
    Result of a Monte Carlo simulation.

    Contains statistical analysis of multiple battle runs.
    """

    # Win statistics
    player_win_rate: float  # 0.0 to 1.0
    bot_win_rate: float
    draw_rate: float

    # Time statistics
    avg_rounds: float
    min_rounds: int
    max_rounds: int

    # Survival statistics (winning side only)
    avg_player_survivors: float
    avg_bot_survivors: float

    # Sample size
    iterations: int

    # Confidence interval (95%) on the player win rate
    win_rate_confidence: Tuple[float, float] = (0.0, 1.0)

    # Raw results for detailed analysis
    individual_results: List[BattleResult] = field(default_factory=list)


class BattleSimulator:
    """
    Monte Carlo battle simulator.

    Every iteration runs its own BattleEngine, so parallel runs share no
    battle state.

    Usage:
        simulator = BattleSimulator(base_seed=12345)
        result = simulator.simulate(player_roster, bot_roster, iterations=200)
        print(f"Player win rate: {result.player_win_rate:.1%}")
    """

    def __init__(
        self,
        base_seed: Optional[int] = None,
        grid_config: GridConfig = DEFAULT_GRID_CONFIG,
        battle_config: BattleConfig = DEFAULT_BATTLE_CONFIG,
        damage_config: DamageConfig = DEFAULT_DAMAGE_CONFIG,
    ):
        """
        Initialize simulator.

        Args:
            base_seed: Base seed for reproducibility (seeds will be derived).
            grid_config: Grid used by every battle.
            battle_config: Battle limits used by every battle.
            damage_config: Damage formulas used by every battle.
        """
        self.base_seed = base_seed
        self.rng = random.Random(base_seed)
        self.grid_config = grid_config
        self.battle_config = battle_config
        self.damage_config = damage_config

    def simulate(
        self,
        player_roster: Sequence[RosterEntry],
        bot_roster: Sequence[RosterEntry],
        iterations: int = 100,
        parallel: bool = False,
        max_workers: Optional[int] = None,
        spells: Optional[Mapping[str, Iterable[TeamSpell]]] = None,
    ) -> SimulationResult:
        """
        Run Monte Carlo simulation.

        Args:
            player_roster: Player units and positions.
            bot_roster: Bot units and positions.
            iterations: Number of battles.
            parallel: Whether to run battles on a thread pool.
            max_workers: Max parallel workers (SIMULATION_WORKERS if None).
            spells: Team spells keyed by "player" / "bot".

        Returns:
            SimulationResult with statistical analysis.

        Raises:
            TimeoutError: Parallel batch exceeded SIMULATION_TIMEOUT_MS per battle.
        """
        seeds = [self._get_iteration_seed(i) for i in range(iterations)]
        spells = {team: list(team_spells) for team, team_spells in (spells or {}).items()}

        def run_single(seed: int) -> BattleResult:
            engine = BattleEngine(
                player_roster,
                bot_roster,
                grid_config=self.grid_config,
                battle_config=self.battle_config,
                damage_config=self.damage_config,
                seed=seed,
                spells=spells,
            )
            return engine.run_battle()

        logger.debug(
            "Simulating %d battles (%s)", iterations, "parallel" if parallel else "sequential"
        )

        if max_workers is None:
            max_workers = settings.SIMULATION_WORKERS
        # Wall-clock budget for the whole batch
        timeout = settings.SIMULATION_TIMEOUT_MS / 1000 * iterations

        if parallel and iterations > 10:
            results: List[Optional[BattleResult]] = [None] * iterations
            executor = ThreadPoolExecutor(max_workers=max_workers)
            try:
                futures = {
                    executor.submit(run_single, seed): i
                    for i, seed in enumerate(seeds)
                }
                for future in as_completed(futures, timeout=timeout):
                    results[futures[future]] = future.result()
            except BaseException:
                # Queued battles are cancelled; running ones finish in the background
                executor.shutdown(wait=False, cancel_futures=True)
                logger.warning(
                    "Simulation batch aborted after %d of %d battles",
                    sum(r is not None for r in results), iterations,
                )
                raise
            executor.shutdown()
        else:
            results = [run_single(seed) for seed in seeds]

        return self._analyze_results(results, iterations)

    def _get_iteration_seed(self, iteration: int) -> int:
        """Get deterministic seed for an iteration."""
        if self.base_seed is not None:
            return self.base_seed + iteration
        return self.rng.randint(0, 2**31)

    def _analyze_results(self, results: List[BattleResult], iterations: int) -> SimulationResult:
        """Analyze simulation results."""
        player_wins = sum(1 for r in results if r.winner == "player")
        bot_wins = sum(1 for r in results if r.winner == "bot")
        draws = iterations - player_wins - bot_wins

        player_win_rate = player_wins / iterations if iterations > 0 else 0
        bot_win_rate = bot_wins / iterations if iterations > 0 else 0
        draw_rate = draws / iterations if iterations > 0 else 0

        # Duration statistics
        rounds = [r.metadata.total_rounds for r in results]
        avg_rounds = statistics.mean(rounds) if rounds else 0
        min_rounds = min(rounds) if rounds else 0
        max_rounds = max(rounds) if rounds else 0

        # Survival statistics
        player_survivors = [
            sum(1 for u in r.final_state.player_units if u.alive)
            for r in results if r.winner == "player"
        ]
        bot_survivors = [
            sum(1 for u in r.final_state.bot_units if u.alive)
            for r in results if r.winner == "bot"
        ]

        confidence = self._calculate_confidence_interval(player_wins, iterations)

        return SimulationResult(
            player_win_rate=player_win_rate,
            bot_win_rate=bot_win_rate,
            draw_rate=draw_rate,
            avg_rounds=avg_rounds,
            min_rounds=min_rounds,
            max_rounds=max_rounds,
            avg_player_survivors=statistics.mean(player_survivors) if player_survivors else 0,
            avg_bot_survivors=statistics.mean(bot_survivors) if bot_survivors else 0,
            iterations=iterations,
            win_rate_confidence=confidence,
            individual_results=results,
        )

    def _calculate_confidence_interval(self, successes: int, n: int) -> Tuple[float, float]:
        """Calculate Wilson score confidence interval."""
        if n == 0:
            return (0.0, 1.0)

        z = 1.96  # 95% confidence
        p = successes / n

        denominator = 1 + z * z / n
        center = (p + z * z / (2 * n)) / denominator

        spread = z * ((p * (1 - p) / n + z * z / (4 * n * n)) ** 0.5) / denominator

        return (max(0.0, center - spread), min(1.0, center + spread))


def quick_simulate(
    player_roster: Sequence[RosterEntry],
    bot_roster: Sequence[RosterEntry],
    iterations: int = 100,
    base_seed: Optional[int] = None,
) -> float:
    """
    Quick simulation helper returning the player win rate.

    Returns:
        Player win rate (0.0 to 1.0).
    """
    simulator = BattleSimulator(base_seed)
    return simulator.simulate(player_roster, bot_roster, iterations=iterations).player_win_rate


def summarize_outcomes(results: Sequence[BattleResult]) -> Dict[str, int]:
    """Count winners across a set of battle results."""
    counts = {"player": 0, "bot": 0, "draw": 0}
    for result in results:
        counts[result.winner] += 1
    return counts
