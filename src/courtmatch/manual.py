"""Manual match grids: creation, filling of empty seats, conversion to matches.

A grid is a list of rounds, each a list of ManualSlot (one per court).
Seats the operator has filled are never changed.
"""

import logging
import random
from typing import Optional

from courtmatch.models import (
    GameType, Gender, ManualGenderMode, ManualSlot, Match, Player,
    ScheduleOptions, lookup_player,
)

logger = logging.getLogger(__name__)


def create_empty_slots(total_rounds: int, court_count: int,
                       game_type: GameType) -> list[list[ManualSlot]]:
    k = game_type.players_per_team
    return [
        [ManualSlot([None] * k, [None] * k) for _ in range(court_count)]
        for _ in range(total_rounds)
    ]


def slots_to_matches(slots: list[list[ManualSlot]], game_type: GameType,
                     court_count: int) -> list[Match]:
    """Complete slots become matches, in round then court order.

    Incomplete slots and slots naming a player twice are skipped.
    """
    k = game_type.players_per_team
    matches = []
    for round_slots in slots:
        for c, slot in enumerate(round_slots[:court_count]):
            team1 = [p for p in slot.team1 if p]
            team2 = [p for p in slot.team2 if p]
            if len(team1) != k or len(team2) != k:
                continue
            if len(set(team1 + team2)) != 2 * k:
                continue
            matches.append(Match(game_type, team1, team2, c + 1))
    return matches


def filter_by_gender(candidates: list[str], genders: dict[str, Gender],
                     mode: ManualGenderMode, team: list[Optional[str]],
                     other_team: list[Optional[str]]) -> list[str]:
    """Keep the candidates a seat may take under a gender mode.

    SAME keys off anyone already seated in the match. MIXED keys off the
    seated teammate in doubles and the seated opponent in singles.
    """
    if mode is ManualGenderMode.RANDOM:
        return candidates
    if mode is ManualGenderMode.MEN_ONLY:
        return [p for p in candidates if genders[p] is Gender.M]
    if mode is ManualGenderMode.WOMEN_ONLY:
        return [p for p in candidates if genders[p] is Gender.F]

    teammates = [p for p in team if p]
    opponents = [p for p in other_team if p]
    if mode is ManualGenderMode.SAME:
        seated = teammates + opponents
        if not seated:
            return candidates
        return [p for p in candidates if genders[p] is genders[seated[0]]]

    # MIXED
    ref = teammates if len(team) == 2 else opponents
    if not ref:
        return candidates
    needed = genders[ref[0]].opposite()
    return [p for p in candidates if genders[p] is needed]


class ManualSlotFiller:
    """Fills the empty seats of a manual grid.

    Candidates for a seat must not already play in that round (which also
    excludes everyone seated in the same match), must pass the gender mode
    and, with group_only, share the group of the players already seated.
    Players more than one game ahead of the least-used player are held back.
    Among the rest the pick is random, or nearest in rating to the seated
    teammates (opponents in singles) when rating balance is on.
    """

    def __init__(self, players: list[str], roster: dict[str, Player],
                 options: ScheduleOptions, rng: random.Random):
        self.players = list(dict.fromkeys(p for p in players if p))
        self.roster = roster
        self.options = options
        self.rng = rng
        self.genders = {p: lookup_player(roster, p).gender for p in self.players}
        self.groups = {p: lookup_player(roster, p).group for p in self.players}

    def _rating(self, p: str) -> Optional[float]:
        return lookup_player(self.roster, p).effective_rating(
            self.options.use_admin_rating)

    def _pick(self, candidates: list[str], team: list[Optional[str]],
              other_team: list[Optional[str]]) -> str:
        if self.options.balance_by_rating:
            ref = [p for p in team if p] or [p for p in other_team if p]
            ref_ratings = [r for r in (self._rating(p) for p in ref) if r is not None]
            rated = [p for p in candidates if self._rating(p) is not None]
            if ref_ratings and rated:
                target = sum(ref_ratings) / len(ref_ratings)
                self.rng.shuffle(rated)
                return min(rated, key=lambda p: abs(self._rating(p) - target))
        return self.rng.choice(candidates)

    def fill(self, slots: list[list[ManualSlot]],
             gender_mode: ManualGenderMode = ManualGenderMode.RANDOM,
             selected_only: bool = False) -> list[list[ManualSlot]]:
        """Return a filled copy of slots; the input grid is not modified."""
        k = self.options.game_type.players_per_team
        court_count = self.options.court_count
        grid = [[slot.copy() for slot in round_slots] for round_slots in slots]

        for round_slots in grid:
            for slot in round_slots:
                if len(slot.team1) > k or len(slot.team2) > k:
                    raise ValueError(
                        f"slot has more than {k} players per team for "
                        f"{self.options.game_type.value}"
                    )
                slot.team1 += [None] * (k - len(slot.team1))
                slot.team2 += [None] * (k - len(slot.team2))
                for p in slot.seated():
                    self.genders.setdefault(p, lookup_player(self.roster, p).gender)
                    self.groups.setdefault(p, lookup_player(self.roster, p).group)

        counts = {p: 0 for p in self.players}
        for round_slots in grid:
            for slot in round_slots[:court_count]:
                for p in slot.seated():
                    counts[p] = counts.get(p, 0) + 1

        filled = 0
        for round_slots in grid:
            used = set()
            for slot in round_slots[:court_count]:
                used.update(slot.seated())

            for slot in round_slots[:court_count]:
                if selected_only and not slot.selected:
                    continue
                mode = slot.gender_mode or gender_mode
                for team, other in ((slot.team1, slot.team2),
                                    (slot.team2, slot.team1)):
                    for i in range(k):
                        if team[i]:
                            continue
                        pick = self._choose(team, other, used, counts, mode, slot)
                        if pick is None:
                            continue
                        team[i] = pick
                        used.add(pick)
                        counts[pick] += 1
                        filled += 1

        logger.debug("Manual fill placed %d players", filled)
        return grid

    def _choose(self, team, other, used, counts, mode, slot) -> Optional[str]:
        candidates = [p for p in self.players
                      if p not in used and counts[p] < self.options.max_games]
        candidates = filter_by_gender(candidates, self.genders, mode, team, other)
        if self.options.group_only:
            seated = [p for p in slot.seated() if p in self.groups]
            if seated:
                group = self.groups[seated[0]]
                candidates = [p for p in candidates if self.groups[p] == group]
        if not candidates:
            return None
        floor = min(counts[p] for p in self.players)
        candidates = [p for p in candidates if counts[p] <= floor + 1]
        if not candidates:
            return None
        return self._pick(candidates, team, other)
