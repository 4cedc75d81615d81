"""Team-vs-team scheduling: both sides of a match come from different teams."""

import logging
import random
from itertools import combinations
from typing import Optional

from courtmatch.adaptive import (
    player_ratings, satisfies_mode, sort_by_games, unique_players,
)
from courtmatch.budget import BudgetExceeded, SearchBudget
from courtmatch.models import (
    GameType, Match, Player, ScheduleOptions, ScheduleResult, ScheduleStatus,
    lookup_player, pair_key,
)
from courtmatch.scoring import PairingScorer, RunState, estimate_total_rounds

logger = logging.getLogger(__name__)

TEAM_POOL_CAP = 8
TEAM_PAIR_WEIGHT = 10.0   # per earlier meeting of the same two teams
STALL_LIMIT = 2


def team_labels(players: list[str], roster: dict[str, Player],
                team_assignments: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Team label per player. Explicit assignments override roster labels."""
    assignments = team_assignments or {}
    labels = {}
    for p in players:
        label = assignments.get(p) or lookup_player(roster, p).team
        if label:
            labels[p] = label
    return labels


def rounds_for_target(n_players: int, max_games: int, court_count: int,
                      game_type: GameType) -> int:
    """Rounds needed so each player gets about max_games matches."""
    per_match = 2 * game_type.players_per_team
    return estimate_total_rounds(n_players, max_games, court_count, per_match)


def build_team_schedule(players: list[str], roster: dict[str, Player],
                        options: ScheduleOptions, rng: random.Random,
                        team_assignments: Optional[dict[str, str]] = None,
                        budget: Optional[SearchBudget] = None) -> ScheduleResult:
    """Schedule total_rounds x court_count matches across team lines.

    Players without a team label sit out. Opponent history is tracked per
    player, and repeated meetings of the same two teams cost extra so the
    matchups rotate across all team pairs.
    """
    players = unique_players(players)
    k = options.game_type.players_per_team
    labels = team_labels(players, roster, team_assignments)

    if len(labels) < 2 * k:
        return ScheduleResult.failure(
            ScheduleStatus.INSUFFICIENT_PLAYERS,
            f"team mode needs at least {2 * k} assigned players, got {len(labels)}",
        )

    members: dict[str, list[str]] = {}
    for p in players:
        if p in labels:
            members.setdefault(labels[p], []).append(p)
    valid_teams = sorted(t for t, ps in members.items() if len(ps) >= k)
    if len(valid_teams) < 2:
        return ScheduleResult.failure(
            ScheduleStatus.CONSTRAINT_UNSATISFIABLE,
            f"team mode needs 2 teams with at least {k} players each",
        )

    total_rounds = options.total_rounds or rounds_for_target(
        len(labels), options.max_games, options.court_count, options.game_type)
    roster_players = [p for p in players if p in labels]
    state = RunState(roster_players)
    scorer = PairingScorer(state, options.max_games, total_rounds, rng,
                           ratings=player_ratings(roster_players, roster, options))
    genders = {p: lookup_player(roster, p).gender for p in roster_players}
    groups = {p: lookup_player(roster, p).group for p in roster_players}
    budget = (budget or SearchBudget()).start()
    meetings: dict[tuple[str, str], int] = {}

    def allowed(side_a, side_b) -> bool:
        if options.group_only and len({groups[p] for p in side_a + side_b}) > 1:
            return False
        return satisfies_mode(side_a, side_b, options.mode, genders)

    matches: list[Match] = []
    stalls = 0
    try:
        for round_no in range(1, total_rounds + 1):
            used: set[str] = set()
            made_any = False

            for court in range(1, options.court_count + 1):
                pools = {}
                for t in valid_teams:
                    avail = [p for p in members[t] if p not in used
                             and state.games[p] < options.max_games]
                    pools[t] = sort_by_games(avail, state, rng)[:TEAM_POOL_CAP]

                best = None
                best_score = 0.0
                for ta, tb in combinations(valid_teams, 2):
                    penalty = meetings.get((ta, tb), 0) * TEAM_PAIR_WEIGHT
                    for side_a in combinations(pools[ta], k):
                        for side_b in combinations(pools[tb], k):
                            side_a_l, side_b_l = list(side_a), list(side_b)
                            if not allowed(side_a_l, side_b_l):
                                continue
                            budget.charge()
                            sc = scorer.score(side_a_l, side_b_l, round_no) + penalty
                            if best is None or sc < best_score:
                                best = (ta, tb, side_a_l, side_b_l)
                                best_score = sc

                if best is None:
                    continue

                ta, tb, t1, t2 = best
                if rng.random() < 0.5:
                    t1, t2 = t2, t1
                matches.append(Match(options.game_type, t1, t2, court))
                state.record(t1, t2, round_no)
                used.update(t1 + t2)
                meetings[pair_key(ta, tb)] = meetings.get(pair_key(ta, tb), 0) + 1
                made_any = True

            if made_any:
                stalls = 0
            else:
                stalls += 1
                if stalls >= STALL_LIMIT:
                    logger.debug("Team schedule stopped at round %d", round_no)
                    break
    except BudgetExceeded as e:
        logger.warning("Team search stopped after %d matches: %s",
                       len(matches), e)
        return ScheduleResult(ScheduleStatus.SEARCH_BUDGET_EXCEEDED, matches, str(e))

    if not matches:
        return ScheduleResult.failure(
            ScheduleStatus.CONSTRAINT_UNSATISFIABLE,
            "no cross-team match satisfies the gender/group constraints",
        )
    logger.info("Team mode: %d matches across teams %s",
                len(matches), ", ".join(valid_teams))
    return ScheduleResult.success(matches)
