from __future__ import annotations

from hackeros.config.balance import Balance
from hackeros.model.missions import PlayerProgress


def level_for_xp(xp: int, table: list[int] = Balance.LEVEL_XP) -> int:
    level = 1
    for i, threshold in enumerate(table):
        if xp >= threshold:
            level = i + 1
    return level


def xp_to_next_level(xp: int, table: list[int] = Balance.LEVEL_XP) -> int:
    # Clamped to 0 once the last threshold is reached.
    level = level_for_xp(xp, table)
    if level >= len(table):
        return 0
    return table[level] - xp


def rank_for_elo(elo: int, ranks: list[tuple[int, str]] = Balance.RANKS) -> str:
    rank = ranks[0][1]
    for threshold, name in ranks:
        if elo >= threshold:
            rank = name
    return rank


def recompute(progress: PlayerProgress) -> None:
    """Derive level, xp_to_next_level and rank from the xp/elo totals."""
    progress.level = level_for_xp(progress.xp)
    progress.xp_to_next_level = xp_to_next_level(progress.xp)
    progress.rank = rank_for_elo(progress.elo)
