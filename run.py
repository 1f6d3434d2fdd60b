"""Battle run script.

Simulates one battle between two generated teams and prints the outcome:
    python run.py [seed] [difficulty]
"""

import logging
import sys

from autobattler.core.config import DEFAULT_GRID_CONFIG
from autobattler.core.settings import settings
from autobattler.combat import (
    RosterEntry,
    analyze_battle_result,
    generate_bot_team,
    simulate_battle,
)
from autobattler.combat.grid import Position


def mirror_to_player_rows(roster, height):
    """Flip a generated bot roster into the player deployment rows."""
    return [
        RosterEntry(e.unit_template_id, Position(e.position.x, height - 1 - e.position.y))
        for e in roster
    ]


def main():
    seed = int(sys.argv[1]) if len(sys.argv) > 1 else settings.DEFAULT_SEED
    difficulty = sys.argv[2] if len(sys.argv) > 2 else "medium"

    logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)

    battle_config = settings.battle_config()
    mirrored = generate_bot_team(seed=seed + 1, difficulty=difficulty)
    player = mirror_to_player_rows(mirrored, DEFAULT_GRID_CONFIG.height)
    bot = generate_bot_team(seed=seed, difficulty=difficulty)

    result = simulate_battle(player, bot, battle_config=battle_config, seed=seed)
    analysis = analyze_battle_result(result)

    print(f"Player: {[e.unit_template_id for e in player]}")
    print(f"Bot:    {[e.unit_template_id for e in bot]}")
    print(f"Winner: {result.winner} after {analysis.total_rounds} rounds")
    print(f"Survivors: {analysis.surviving_units}")
    print(f"Damage dealt: {analysis.damage_dealt}")


if __name__ == "__main__":
    main()
