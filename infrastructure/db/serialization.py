from __future__ import annotations

import json
from typing import Iterable, List, Tuple

from domain.models import Player, PlayerDecision, PlayerTurnResult, TurnOutcome


def players_to_json(players: Iterable[Player]) -> str:
    return json.dumps(
        [
            {
                "user_id": p.user_id,
                "name": p.name,
                "score": p.score,
                "decision": p.decision.value if p.decision is not None else None,
            }
            for p in players
        ]
    )


def players_from_json(data: str) -> List[Player]:
    return [
        Player(
            user_id=item["user_id"],
            name=item["name"],
            score=int(item["score"]),
            decision=PlayerDecision(item["decision"]) if item.get("decision") else None,
        )
        for item in json.loads(data)
    ]


def turn_players_to_json(results: Iterable[PlayerTurnResult]) -> str:
    return json.dumps(
        [
            {
                "user_id": r.user_id,
                "name": r.name,
                "decision": r.decision.value,
                "result": r.result.value,
            }
            for r in results
        ]
    )


def turn_players_from_json(data: str) -> Tuple[PlayerTurnResult, ...]:
    return tuple(
        PlayerTurnResult(
            user_id=item["user_id"],
            name=item["name"],
            decision=PlayerDecision(item["decision"]),
            result=TurnOutcome(item["result"]),
        )
        for item in json.loads(data)
    )
