from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Mapping, Tuple, Union

from loguru import logger


@dataclass(frozen=True)
class Roster:
    participants: Tuple[str, ...]
    exclusions: Dict[str, FrozenSet[str]] = field(default_factory=dict)

    def matches(self, names: Iterable[str]) -> bool:
        names = list(names)
        return len(names) == len(self.participants) and sorted(names) == sorted(self.participants)


def _clean_name(value, where: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Roster {where} must be non-empty strings, got {value!r}.")
    return value.strip()


def build_roster(
    participants: Iterable[str],
    exclusions: Mapping[str, Iterable[str]] | None = None,
    symmetric: bool = True,
) -> Roster:
    names = tuple(_clean_name(name, "participants") for name in participants)
    known = set(names)

    excluded: Dict[str, set] = {name: set() for name in names}
    for giver, targets in (exclusions or {}).items():
        giver = _clean_name(giver, "exclusion keys")
        if isinstance(targets, str):
            targets = [targets]
        for target in targets:
            target = _clean_name(target, "exclusion values")
            if giver not in known or target not in known:
                logger.bind(giver=giver, excluded=target).warning(
                    "Dropping exclusion for a name that is not a participant"
                )
                continue
            excluded[giver].add(target)
            if symmetric:
                excluded[target].add(giver)

    return Roster(
        participants=names,
        exclusions={name: frozenset(targets) for name, targets in excluded.items() if targets},
    )


def load_roster(path: Union[str, Path], symmetric: bool = True) -> Roster:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ValueError(f"Roster file not found: {path}") from None
    except json.JSONDecodeError as exc:
        raise ValueError(f"Roster file {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("participants"), list):
        raise ValueError(f"Roster file {path} must contain a \"participants\" list.")
    exclusions = data.get("exclusions") or {}
    if not isinstance(exclusions, dict):
        raise ValueError(f"Roster file {path} has an \"exclusions\" value that is not an object.")

    roster = build_roster(data["participants"], exclusions, symmetric=symmetric)
    logger.bind(path=str(path)).info(
        "Roster loaded: {count} participants, {pairs} exclusions",
        count=len(roster.participants),
        pairs=sum(len(targets) for targets in roster.exclusions.values()),
    )
    return roster
