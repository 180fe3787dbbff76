"""
Toornament API endpoints.

Each endpoint is an immutable descriptor carrying the route's path and
query parameters. ``build_url`` is the default strategy turning a
descriptor into an absolute URL; the client accepts any callable with
the same signature.
"""

from typing import Callable, List
from urllib.parse import urlencode

from pydantic import BaseModel

from toornament_core.api.filters import (
    bool_param,
    MatchFilter,
    TournamentParticipantsFilter,
    TournamentVideosFilter,
)

API_BASE = "https://api.toornament.com"


class Endpoint(BaseModel):
    """Base endpoint descriptor."""

    model_config = {"frozen": True}

    def path(self) -> str:
        raise NotImplementedError

    def query(self) -> List[tuple[str, str]]:
        return []


UrlBuilder = Callable[[Endpoint], str]


# =============================================================================
# Authentication and disciplines
# =============================================================================


class OauthToken(Endpoint):
    def path(self) -> str:
        return "/oauth/v2/token"


class AllDisciplines(Endpoint):
    def path(self) -> str:
        return "/v1/disciplines"


class DisciplineById(Endpoint):
    discipline_id: str

    def path(self) -> str:
        return f"/v1/disciplines/{self.discipline_id}"


# =============================================================================
# Tournaments
# =============================================================================


class AllTournaments(Endpoint):
    with_streams: bool = False

    def path(self) -> str:
        return "/v1/tournaments"

    def query(self) -> List[tuple[str, str]]:
        return [("with_streams", bool_param(self.with_streams))]


class MyTournaments(Endpoint):
    def path(self) -> str:
        return "/v1/me/tournaments"


class TournamentByIdGet(Endpoint):
    tournament_id: str
    with_streams: bool = False

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}"

    def query(self) -> List[tuple[str, str]]:
        return [("with_streams", bool_param(self.with_streams))]


class TournamentByIdUpdate(Endpoint):
    tournament_id: str

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}"


class TournamentCreate(Endpoint):
    def path(self) -> str:
        return "/v1/tournaments"


# =============================================================================
# Matches and games
# =============================================================================


class MatchesByTournament(Endpoint):
    tournament_id: str
    with_games: bool = False

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/matches"

    def query(self) -> List[tuple[str, str]]:
        return [("with_games", bool_param(self.with_games))]


class MatchesByDiscipline(Endpoint):
    discipline_id: str
    filter: MatchFilter = MatchFilter()

    def path(self) -> str:
        return f"/v1/disciplines/{self.discipline_id}/matches"

    def query(self) -> List[tuple[str, str]]:
        return self.filter.to_params()


class MatchByIdGet(Endpoint):
    tournament_id: str
    match_id: str
    with_games: bool = False

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/matches/{self.match_id}"

    def query(self) -> List[tuple[str, str]]:
        return [("with_games", bool_param(self.with_games))]


class MatchByIdUpdate(Endpoint):
    tournament_id: str
    match_id: str

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/matches/{self.match_id}"


class MatchResult(Endpoint):
    tournament_id: str
    match_id: str

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/matches/{self.match_id}/result"


class MatchGames(Endpoint):
    tournament_id: str
    match_id: str
    with_stats: bool = False

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/matches/{self.match_id}/games"

    def query(self) -> List[tuple[str, str]]:
        return [("with_stats", bool_param(self.with_stats))]


class MatchGameByNumberGet(Endpoint):
    tournament_id: str
    match_id: str
    game_number: int
    with_stats: bool = False

    def path(self) -> str:
        return (
            f"/v1/tournaments/{self.tournament_id}/matches/{self.match_id}"
            f"/games/{self.game_number}"
        )

    def query(self) -> List[tuple[str, str]]:
        return [("with_stats", bool_param(self.with_stats))]


class MatchGameByNumberUpdate(Endpoint):
    tournament_id: str
    match_id: str
    game_number: int

    def path(self) -> str:
        return (
            f"/v1/tournaments/{self.tournament_id}/matches/{self.match_id}"
            f"/games/{self.game_number}"
        )


class MatchGameResultGet(Endpoint):
    tournament_id: str
    match_id: str
    game_number: int

    def path(self) -> str:
        return (
            f"/v1/tournaments/{self.tournament_id}/matches/{self.match_id}"
            f"/games/{self.game_number}/result"
        )


class MatchGameResultUpdate(Endpoint):
    tournament_id: str
    match_id: str
    game_number: int
    update_match: bool = False

    def path(self) -> str:
        return (
            f"/v1/tournaments/{self.tournament_id}/matches/{self.match_id}"
            f"/games/{self.game_number}/result"
        )

    def query(self) -> List[tuple[str, str]]:
        return [("update_match", bool_param(self.update_match))]


# =============================================================================
# Participants, permissions, stages, videos
# =============================================================================


class Participants(Endpoint):
    tournament_id: str
    filter: TournamentParticipantsFilter = TournamentParticipantsFilter()

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/participants"

    def query(self) -> List[tuple[str, str]]:
        return self.filter.to_params()


class ParticipantCreate(Endpoint):
    tournament_id: str

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/participants"


class ParticipantsUpdate(Endpoint):
    tournament_id: str

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/participants"


class ParticipantById(Endpoint):
    tournament_id: str
    participant_id: str

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/participants/{self.participant_id}"


class Permissions(Endpoint):
    tournament_id: str

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/permissions"


class PermissionById(Endpoint):
    tournament_id: str
    permission_id: str

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/permissions/{self.permission_id}"


class Stages(Endpoint):
    tournament_id: str

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/stages"


class Videos(Endpoint):
    tournament_id: str
    filter: TournamentVideosFilter = TournamentVideosFilter()

    def path(self) -> str:
        return f"/v1/tournaments/{self.tournament_id}/videos"

    def query(self) -> List[tuple[str, str]]:
        return self.filter.to_params()


def build_url(endpoint: Endpoint, base_url: str = API_BASE) -> str:
    """
    Build the absolute URL for an endpoint.

    Args:
        endpoint: Endpoint descriptor
        base_url: API root, without trailing slash

    Returns:
        URL with the endpoint's query string appended, if any
    """
    url = f"{base_url.rstrip('/')}{endpoint.path()}"
    params = endpoint.query()
    if params:
        url = f"{url}?{urlencode(params, safe=',')}"
    return url
