from __future__ import annotations

from domain.models import PlayerDecision


def encode_join_choice(game_id: str) -> str:
    """
    Encode a "join this game" callback.

    Format: join:{game_id}
    """

    return f"join:{game_id}"


def parse_join_choice(data: str) -> str:
    parts = data.split(":")
    if len(parts) != 2 or parts[0] != "join" or not parts[1]:
        raise ValueError(f"Invalid join callback data: {data}")

    return parts[1]


def encode_decision(game_id: str, decision: PlayerDecision) -> str:
    """
    Encode a decision button.

    Format: decide:{game_id}:{decision}
    """

    return f"decide:{game_id}:{decision.value}"


def parse_decision(data: str) -> tuple[str, PlayerDecision]:
    parts = data.split(":")
    if len(parts) != 3 or parts[0] != "decide" or not parts[1]:
        raise ValueError(f"Invalid decision callback data: {data}")

    game_id = parts[1]
    decision = PlayerDecision.parse(parts[2])
    return game_id, decision
