"""
Analysis Queries

AnalysisParams is what the application asks for; Query is the immutable
request actually sent to the engine. Two queries are equivalent when
everything but their id matches.
"""

import itertools
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .version import DEFAULT_VERSION, EngineVersion


# First engine version that understands includeMovesOwnership
MOVES_OWNERSHIP_VERSION = EngineVersion(1, 10, 0)


Move = Tuple[str, str]  # (colour, vertex), e.g. ("B", "Q16")


def _opponent(colour: str) -> str:
    return "W" if colour.upper() == "B" else "B"


@dataclass
class AnalysisParams:
    """
    Position and search settings for one analysis request.

    Built by the application from its current board node.
    """

    node_id: str
    moves: List[Move] = field(default_factory=list)
    rules: str = "Chinese"
    komi: float = 7.5
    board_x_size: int = 19
    board_y_size: int = 19
    initial_stones: List[Move] = field(default_factory=list)
    initial_player: Optional[str] = None
    max_visits: Optional[int] = None  # None = builder default
    avoid_list: Optional[List[str]] = None  # vertices the next player may not play

    def next_player(self) -> str:
        """Colour to move after the move history."""
        if self.moves:
            return _opponent(self.moves[-1][0])
        return (self.initial_player or "B").upper()


@dataclass(frozen=True)
class Query:
    """One analysis request as the engine sees it."""

    id: str
    rules: str
    komi: float
    board_x_size: int
    board_y_size: int
    initial_stones: Tuple[Move, ...]
    moves: Tuple[Move, ...]
    initial_player: str
    max_visits: int
    analyze_turns: Tuple[int, ...]
    include_ownership: bool
    include_policy: bool
    report_every: float
    avoid_moves: Optional[Tuple[str, ...]] = None
    avoid_player: Optional[str] = None
    include_moves_ownership: Optional[bool] = None

    def to_message(self) -> Dict[str, Any]:
        """JSON object for the engine."""
        message: Dict[str, Any] = {
            "id": self.id,
            "rules": self.rules,
            "komi": self.komi,
            "boardXSize": self.board_x_size,
            "boardYSize": self.board_y_size,
            "initialStones": [list(s) for s in self.initial_stones],
            "moves": [list(m) for m in self.moves],
            "initialPlayer": self.initial_player,
            "maxVisits": self.max_visits,
            "analyzeTurns": list(self.analyze_turns),
            "includeOwnership": self.include_ownership,
            "includePolicy": self.include_policy,
            "reportDuringSearchEvery": self.report_every,
        }
        if self.avoid_moves:
            message["avoidMoves"] = [
                {"player": self.avoid_player, "moves": list(self.avoid_moves), "untilDepth": 1}
            ]
        if self.include_moves_ownership is not None:
            message["includeMovesOwnership"] = self.include_moves_ownership
        return message


def _content(query: Query) -> tuple:
    return tuple(getattr(query, f.name) for f in fields(query) if f.name != "id")


def compare_queries(a: Optional[Query], b: Optional[Query]) -> bool:
    """True when a and b request the same analysis (ids are ignored)."""
    if a is None or b is None:
        return a is b
    return _content(a) == _content(b)


class QueryBuilder:
    """
    Builds queries with session-wide defaults.

    Every query gets a fresh id of the form "<node_id>:<n>".
    """

    def __init__(
        self,
        max_visits: int = 1000,
        report_every: float = 0.1,
        include_ownership: bool = True,
        include_policy: bool = True,
        moves_ownership: bool = False,
    ):
        self.max_visits = max_visits
        self.report_every = report_every
        self.include_ownership = include_ownership
        self.include_policy = include_policy
        self.moves_ownership = moves_ownership
        self._counter = itertools.count(1)

    @classmethod
    def from_config(cls, config) -> "QueryBuilder":
        return cls(
            max_visits=config.max_visits,
            report_every=config.report_every,
            include_ownership=config.include_ownership,
            include_policy=config.include_policy,
            moves_ownership=config.moves_ownership,
        )

    def build(self, params: AnalysisParams, version: EngineVersion = DEFAULT_VERSION) -> Query:
        avoid: Optional[Sequence[str]] = params.avoid_list or None

        moves_ownership = None
        if self.moves_ownership and self.include_ownership and version >= MOVES_OWNERSHIP_VERSION:
            moves_ownership = True

        return Query(
            id=f"{params.node_id}:{next(self._counter)}",
            rules=params.rules,
            komi=params.komi,
            board_x_size=params.board_x_size,
            board_y_size=params.board_y_size,
            initial_stones=tuple((c.upper(), v) for c, v in params.initial_stones),
            moves=tuple((c.upper(), v) for c, v in params.moves),
            initial_player=(params.initial_player or "B").upper(),
            max_visits=params.max_visits if params.max_visits is not None else self.max_visits,
            analyze_turns=(len(params.moves),),
            include_ownership=self.include_ownership,
            include_policy=self.include_policy,
            report_every=self.report_every,
            avoid_moves=tuple(avoid) if avoid else None,
            avoid_player=params.next_player() if avoid else None,
            include_moves_ownership=moves_ownership,
        )
