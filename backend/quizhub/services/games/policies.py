"""What a running game does when a player leaves the room.

A policy is a plain function ``policy(game, player_id)``. Games look it
up by name at initialize time, so the rule can be swapped per server
(``DEPARTURE_POLICY``) without touching the game variants.
"""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def forfeit(game, player_id: str) -> None:
    """Unseat the player, keep its score, conclude once nobody is seated."""
    game.unseat(player_id)
    if not game.seated_ids():
        game.conclude("All players left.")


def conclude_below_minimum(game, player_id: str) -> None:
    game.unseat(player_id)
    remaining = len(game.seated_ids())
    if remaining < game.options.min_players:
        logger.info(
            f"[departure] room={game.room_id} seated={remaining} below minimum={game.options.min_players}"
        )
        game.conclude("Not enough players to continue.")


DEPARTURE_POLICIES = {
    'forfeit': forfeit,
    'conclude_below_minimum': conclude_below_minimum,
}


def get_policy(name: str):
    policy = DEPARTURE_POLICIES.get(name)
    if policy is None:
        logger.warning(f"[departure] unknown policy {name!r}, using forfeit")
        return forfeit
    return policy
