"""Round-by-round greedy schedulers for doubles, mixed doubles and singles.

Each round fills courts in order. For every court the currently available
players (not yet used this round, still under the games target) are sorted
by games played with random tie order, a capped pool is taken from the
front, every valid candidate is scored and the cheapest one is committed.
A round that fills no court is a stall; too many consecutive stalls end
the run.
"""

import logging
import random
from itertools import combinations
from typing import Callable, Optional

from courtmatch.budget import BudgetExceeded, SearchBudget
from courtmatch.models import (
    GameType, Gender, Match, PairingMode, Player, ScheduleOptions,
    ScheduleResult, ScheduleStatus, lookup_player,
)
from courtmatch.scoring import (
    MixedScorer, PairingScorer, RunState, SinglesScorer,
    estimate_total_rounds,
)

logger = logging.getLogger(__name__)

DOUBLES_POOL_CAP = 18
SINGLES_POOL_CAP = 14
DOUBLES_STALL_LIMIT = 2
SINGLES_STALL_LIMIT = 3
MIXED_TRIALS = 180


def unique_players(players: list[str]) -> list[str]:
    """Drop duplicate names, keeping first occurrence order."""
    seen = set()
    result = []
    for p in players:
        if p and p not in seen:
            seen.add(p)
            result.append(p)
    return result


def player_ratings(players: list[str], roster: dict[str, Player],
                   options: ScheduleOptions) -> Optional[dict[str, Optional[float]]]:
    """Effective rating per player, or None when rating balance is off."""
    if not options.balance_by_rating:
        return None
    return {
        p: lookup_player(roster, p).effective_rating(options.use_admin_rating)
        for p in players
    }


def satisfies_mode(team1: list[str], team2: list[str], mode: PairingMode,
                   genders: dict[str, Gender]) -> bool:
    """Gender rule of a pairing mode for an already-split match.

    Same-gender: every player shares one gender. Mixed: doubles teams are
    one man and one woman; singles opponents are of opposite gender.
    """
    if mode is PairingMode.SAME_GENDER:
        return len({genders[p] for p in team1 + team2}) == 1
    if mode is PairingMode.MIXED:
        if len(team1) == 1:
            return genders[team1[0]] is not genders[team2[0]]
        return all({genders[p] for p in team} == {Gender.M, Gender.F}
                   for team in (team1, team2))
    return True


def sort_by_games(avail: list[str], state: RunState,
                  rng: random.Random) -> list[str]:
    """Fewest games first, ties in random order."""
    shuffled = list(avail)
    rng.shuffle(shuffled)
    shuffled.sort(key=lambda p: state.games[p])
    return shuffled


def doubles_filter(players: list[str], roster: dict[str, Player],
                   options: ScheduleOptions) -> Callable[[tuple], bool]:
    """Hard constraints on a group of four for random/same-gender doubles."""
    genders = {p: lookup_player(roster, p).gender for p in players}
    groups = {p: lookup_player(roster, p).group for p in players}
    same_gender = options.mode is PairingMode.SAME_GENDER

    def can_use(four) -> bool:
        if options.group_only and len({groups[p] for p in four}) > 1:
            return False
        if same_gender and len({genders[p] for p in four}) > 1:
            return False
        return True

    return can_use


def _best_doubles_split(pool: list[str], can_use: Callable[[tuple], bool],
                        scorer: PairingScorer, round_no: int,
                        budget: SearchBudget):
    best = None
    best_score = 0.0
    for four in combinations(pool, 4):
        if not can_use(four):
            continue
        a, b, c, d = four
        for t1, t2 in (([a, b], [c, d]), ([a, c], [b, d]), ([a, d], [b, c])):
            budget.charge()
            sc = scorer.score(t1, t2, round_no)
            if best is None or sc < best_score:
                best = (t1, t2)
                best_score = sc
    return best


def build_doubles_schedule(players: list[str], roster: dict[str, Player],
                           options: ScheduleOptions, rng: random.Random,
                           budget: Optional[SearchBudget] = None) -> ScheduleResult:
    """Random or same-gender doubles by exhaustive search over a capped pool.

    Mixed mode is delegated to build_mixed_doubles_schedule.
    """
    if options.mode is PairingMode.MIXED:
        return build_mixed_doubles_schedule(players, roster, options, rng, budget)

    players = unique_players(players)
    if len(players) < 4:
        return ScheduleResult.failure(
            ScheduleStatus.INSUFFICIENT_PLAYERS,
            f"doubles needs at least 4 players, got {len(players)}",
        )
    if options.max_games == 0:
        return ScheduleResult.success([])

    max_games = options.max_games
    state = RunState(players)
    total_rounds = estimate_total_rounds(
        len(players), max_games, options.court_count, 4)
    scorer = PairingScorer(state, max_games, total_rounds, rng,
                           ratings=player_ratings(players, roster, options))
    can_use = doubles_filter(players, roster, options)
    budget = (budget or SearchBudget()).start()

    matches: list[Match] = []
    round_no = 0
    stalls = 0
    try:
        while stalls < DOUBLES_STALL_LIMIT:
            eligible = [p for p in players if state.games[p] < max_games]
            if len(eligible) < 4:
                break

            round_no += 1
            used: set[str] = set()
            made_any = False

            for court in range(1, options.court_count + 1):
                avail = [p for p in eligible if p not in used]
                if len(avail) < 4:
                    break

                avail = sort_by_games(avail, state, rng)
                pool = avail[:DOUBLES_POOL_CAP]
                best = _best_doubles_split(pool, can_use, scorer, round_no, budget)
                if best is None and len(avail) > len(pool):
                    best = _best_doubles_split(avail, can_use, scorer,
                                               round_no, budget)
                if best is None:
                    continue

                t1, t2 = best
                matches.append(Match(GameType.DOUBLES, t1, t2, court))
                state.record(t1, t2, round_no)
                used.update(t1 + t2)
                made_any = True

            if made_any:
                stalls = 0
            else:
                stalls += 1
                logger.debug("Doubles round %d stalled (%d in a row)",
                             round_no, stalls)
    except BudgetExceeded as e:
        logger.warning("Doubles search stopped after %d matches: %s",
                       len(matches), e)
        return ScheduleResult(ScheduleStatus.SEARCH_BUDGET_EXCEEDED, matches, str(e))

    if not matches:
        return ScheduleResult.failure(
            ScheduleStatus.CONSTRAINT_UNSATISFIABLE,
            "no group of four satisfies the gender/group constraints",
        )
    logger.info("Doubles: %d matches over %d rounds for %d players",
                len(matches), round_no, len(players))
    return ScheduleResult.success(matches)


def build_mixed_doubles_schedule(players: list[str], roster: dict[str, Player],
                                 options: ScheduleOptions, rng: random.Random,
                                 budget: Optional[SearchBudget] = None) -> ScheduleResult:
    """Mixed doubles: every team is one man and one woman.

    Each court is resolved by sampling two available men and two available
    women a bounded number of times and keeping the cheapest of the two
    mixed splits per sample.
    """
    players = unique_players(players)
    if len(players) < 4:
        return ScheduleResult.failure(
            ScheduleStatus.INSUFFICIENT_PLAYERS,
            f"mixed doubles needs at least 4 players, got {len(players)}",
        )

    genders = {p: lookup_player(roster, p).gender for p in players}
    groups = {p: lookup_player(roster, p).group for p in players}
    men = [p for p in players if genders[p] is Gender.M]
    women = [p for p in players if genders[p] is Gender.F]
    if len(men) < 2 or len(women) < 2:
        return ScheduleResult.failure(
            ScheduleStatus.CONSTRAINT_UNSATISFIABLE,
            f"mixed doubles needs 2 men and 2 women, got {len(men)}M/{len(women)}F",
        )
    if options.max_games == 0:
        return ScheduleResult.success([])

    max_games = options.max_games
    state = RunState(players)
    scorer = MixedScorer(state, rng,
                         ratings=player_ratings(players, roster, options))
    budget = (budget or SearchBudget()).start()

    def group_of(p):
        return groups[p] if options.group_only else None

    matches: list[Match] = []
    round_no = 0
    stalls = 0
    try:
        while stalls < DOUBLES_STALL_LIMIT:
            if all(state.games[p] >= max_games for p in players):
                break

            round_no += 1
            used: set[str] = set()
            made_any = False

            for court in range(1, options.court_count + 1):
                by_group: dict = {}
                for p in players:
                    if p in used or state.games[p] >= max_games:
                        continue
                    entry = by_group.setdefault(group_of(p), ([], []))
                    entry[0 if genders[p] is Gender.M else 1].append(p)
                candidates = sorted(
                    (g for g, (m, w) in by_group.items()
                     if len(m) >= 2 and len(w) >= 2),
                    key=str,
                )
                if not candidates:
                    continue

                best = None
                best_score = 0.0
                for _ in range(MIXED_TRIALS):
                    avail_m, avail_w = by_group[rng.choice(candidates)]
                    ms = rng.sample(avail_m, 2)
                    ws = rng.sample(avail_w, 2)
                    for t1, t2 in (([ms[0], ws[0]], [ms[1], ws[1]]),
                                   ([ms[0], ws[1]], [ms[1], ws[0]])):
                        budget.charge()
                        sc = scorer.score(t1, t2)
                        if best is None or sc < best_score:
                            best = (t1, t2)
                            best_score = sc

                t1, t2 = best
                matches.append(Match(GameType.DOUBLES, t1, t2, court))
                state.record(t1, t2, round_no)
                used.update(t1 + t2)
                made_any = True

            if made_any:
                stalls = 0
            else:
                stalls += 1
    except BudgetExceeded as e:
        logger.warning("Mixed doubles search stopped after %d matches: %s",
                       len(matches), e)
        return ScheduleResult(ScheduleStatus.SEARCH_BUDGET_EXCEEDED, matches, str(e))

    if not matches:
        return ScheduleResult.failure(
            ScheduleStatus.CONSTRAINT_UNSATISFIABLE,
            "no group has 2 men and 2 women available",
        )
    logger.info("Mixed doubles: %d matches over %d rounds", len(matches), round_no)
    return ScheduleResult.success(matches)


def singles_filter(players: list[str], roster: dict[str, Player],
                   options: ScheduleOptions) -> Callable[[str, str], bool]:
    """Hard constraints on a singles pairing."""
    genders = {p: lookup_player(roster, p).gender for p in players}
    groups = {p: lookup_player(roster, p).group for p in players}

    def can_pair(a: str, b: str) -> bool:
        if options.group_only and groups[a] != groups[b]:
            return False
        if options.mode is PairingMode.SAME_GENDER and genders[a] is not genders[b]:
            return False
        if options.mode is PairingMode.MIXED and genders[a] is genders[b]:
            return False
        return True

    return can_pair


def _best_singles_pair(pool: list[str], can_pair, scorer: SinglesScorer,
                       round_no: int, budget: SearchBudget):
    best = None
    best_score = 0.0
    for a, b in combinations(pool, 2):
        if not can_pair(a, b):
            continue
        budget.charge()
        sc = scorer.score(a, b, round_no)
        if best is None or sc < best_score:
            best = (a, b)
            best_score = sc
    return best


def build_singles_schedule(players: list[str], roster: dict[str, Player],
                           options: ScheduleOptions, rng: random.Random,
                           budget: Optional[SearchBudget] = None) -> ScheduleResult:
    """Singles with random, same-gender or mixed-gender pairing."""
    players = unique_players(players)
    if len(players) < 2:
        return ScheduleResult.failure(
            ScheduleStatus.INSUFFICIENT_PLAYERS,
            f"singles needs at least 2 players, got {len(players)}",
        )
    if options.max_games == 0:
        return ScheduleResult.success([])

    max_games = options.max_games
    state = RunState(players)
    scorer = SinglesScorer(state, rng,
                           ratings=player_ratings(players, roster, options))
    can_pair = singles_filter(players, roster, options)
    budget = (budget or SearchBudget()).start()

    matches: list[Match] = []
    round_no = 0
    stalls = 0
    try:
        while stalls < SINGLES_STALL_LIMIT:
            eligible = [p for p in players if state.games[p] < max_games]
            if len(eligible) < 2:
                break
            if not any(can_pair(a, b) for a, b in combinations(eligible, 2)):
                break

            round_no += 1
            used: set[str] = set()
            made_any = False

            for court in range(1, options.court_count + 1):
                avail = [p for p in eligible if p not in used]
                if len(avail) < 2:
                    break

                avail = sort_by_games(avail, state, rng)
                pool = avail[:SINGLES_POOL_CAP]
                best = _best_singles_pair(pool, can_pair, scorer, round_no, budget)
                if best is None and len(avail) > len(pool):
                    best = _best_singles_pair(avail, can_pair, scorer,
                                              round_no, budget)
                if best is None:
                    continue

                a, b = best
                matches.append(Match(GameType.SINGLES, [a], [b], court))
                state.record([a], [b], round_no)
                used.update((a, b))
                made_any = True

            if made_any:
                stalls = 0
            else:
                stalls += 1
                logger.debug("Singles round %d stalled (%d in a row)",
                             round_no, stalls)
    except BudgetExceeded as e:
        logger.warning("Singles search stopped after %d matches: %s",
                       len(matches), e)
        return ScheduleResult(ScheduleStatus.SEARCH_BUDGET_EXCEEDED, matches, str(e))

    if not matches:
        return ScheduleResult.failure(
            ScheduleStatus.CONSTRAINT_UNSATISFIABLE,
            "no pair of players satisfies the gender/group constraints",
        )
    logger.info("Singles: %d matches over %d rounds", len(matches), round_no)
    return ScheduleResult.success(matches)
