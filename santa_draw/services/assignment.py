from __future__ import annotations

import random
from collections import Counter
from typing import Collection, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

Exclusions = Mapping[str, Collection[str]]


class AssignmentError(RuntimeError):
    pass


class InvalidRoster(AssignmentError):
    pass


class Infeasible(AssignmentError):
    pass


class ShuffleSource(Protocol):
    def shuffle(self, x: List[str]) -> None: ...


def _names(value: Collection[str]) -> frozenset:
    # A bare string names a single person.
    if isinstance(value, str):
        return frozenset([value])
    return frozenset(value)


def is_allowed(giver: str, recipient: str, exclusions: Exclusions) -> bool:
    if giver == recipient:
        return False
    return recipient not in _names(exclusions.get(giver, ()))


def validate_assignments(
    mapping: Mapping[str, str],
    participants: Sequence[str],
    exclusions: Optional[Exclusions] = None,
) -> bool:
    """Return True when ``mapping`` is a derangement of ``participants`` honouring ``exclusions``."""
    exclusions = exclusions or {}
    roster = set(participants)
    if set(mapping) != roster:
        return False

    seen = set()
    for giver in participants:
        recipient = mapping.get(giver)
        if recipient is None or recipient not in roster:
            return False
        if not is_allowed(giver, recipient, exclusions):
            return False
        if recipient in seen:
            return False
        seen.add(recipient)
    return len(seen) == len(roster)


def _check_roster(participants: Sequence[str]) -> None:
    if len(participants) < 2:
        raise InvalidRoster("At least 2 participants are required.")
    if len(set(participants)) != len(participants):
        duplicates = sorted(name for name, count in Counter(participants).items() if count > 1)
        raise InvalidRoster("Duplicate participants: " + ", ".join(duplicates))


def _construct(participants: List[str], rng: ShuffleSource) -> Dict[str, str]:
    shuffled = list(participants)
    rng.shuffle(shuffled)
    last = len(participants) - 1
    for i, giver in enumerate(participants):
        if shuffled[i] == giver:
            j = 0 if i == last else i + 1
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return dict(zip(participants, shuffled))


def _repair(mapping: Dict[str, str], participants: List[str], exclusions: Exclusions) -> bool:
    # Greedy: first eligible swap in roster order, no backtracking.
    for giver in participants:
        recipient = mapping[giver]
        if is_allowed(giver, recipient, exclusions):
            continue

        for other in participants:
            if other == giver:
                continue
            other_recipient = mapping[other]
            if other_recipient == giver:
                continue
            if is_allowed(giver, other_recipient, exclusions) and is_allowed(other, recipient, exclusions):
                mapping[giver], mapping[other] = other_recipient, recipient
                break
        else:
            return False
    return True


def _normalize_exclusions(
    participants: Sequence[str], exclusions: Optional[Exclusions]
) -> Dict[str, frozenset]:
    roster = set(participants)
    return {
        giver: _names(excluded) & roster
        for giver, excluded in (exclusions or {}).items()
        if giver in roster
    }


def generate_assignments(
    participant_ids: Iterable[str],
    exclusions: Optional[Exclusions] = None,
    rng: Optional[ShuffleSource] = None,
    seed: Optional[int] = None,
    max_attempts: int = 1000,
) -> Dict[str, str]:
    """Draw a random giver -> recipient derangement that avoids excluded pairs.

    Each attempt shuffles the roster, breaks fixed points by swapping with the
    next position, then repairs any remaining invalid pair by swapping
    recipients with the first compatible giver. Raises ``InvalidRoster`` for
    bad input and ``Infeasible`` once ``max_attempts`` attempts fail.
    """
    participants = list(participant_ids)
    _check_roster(participants)
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1.")

    constraints = _normalize_exclusions(participants, exclusions)
    for giver in participants:
        allowed = set(participants) - {giver} - constraints.get(giver, frozenset())
        if not allowed:
            raise Infeasible(f"{giver} is excluded from every other participant.")

    if rng is None:
        rng = random.Random(seed)

    for _ in range(max_attempts):
        mapping = _construct(participants, rng)
        if not validate_assignments(mapping, participants, constraints):
            if not _repair(mapping, participants, constraints):
                continue
        if validate_assignments(mapping, participants, constraints):
            return mapping

    raise Infeasible("Could not build assignments with the given exclusions.")
