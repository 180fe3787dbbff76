"""
Toornament API Client.

Blocking client for the Toornament web API. A client is created once with
``Toornament.with_application`` and may be shared between threads; it
refreshes its access token on its own when the token expires.
"""

import time
from functools import partial
from typing import Optional, Any, List, Set, Type, TypeVar, Callable

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError as PydanticValidationError

from toornament_core.api import endpoints as ep
from toornament_core.api.auth import AccessToken, Credentials, TokenStore, authenticate
from toornament_core.api.endpoints import API_BASE, Endpoint, UrlBuilder, build_url
from toornament_core.api.exceptions import (
    AuthenticationError,
    RateLimitError,
    SerializationError,
    ServiceError,
    StatusError,
)
from toornament_core.api.filters import (
    MatchFilter,
    TournamentParticipantsFilter,
    TournamentVideosFilter,
)
from toornament_core.api.models import (
    Discipline,
    Game,
    Match,
    MatchResult,
    Participant,
    Permission,
    PermissionAttribute,
    Stage,
    Tournament,
    Video,
)
from toornament_core.api.pipeline import (
    RequestOutcome,
    RequestPipeline,
    RateLimited,
    ServiceRejected,
    Success,
    TransportFailure,
)
from toornament_core.config.models import ClientConfig
from toornament_core.utils.logging import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class Toornament:
    """
    Client for the Toornament API.

    Provides methods for:
    - Authentication (client-credentials token, refresh)
    - Disciplines and tournaments
    - Matches, games and results
    - Participants, permissions, stages and videos
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        credentials: Credentials,
        http: httpx.Client,
        token: AccessToken,
        url_builder: Optional[UrlBuilder] = None,
        timeout: float = DEFAULT_TIMEOUT,
        token_leeway: float = 0.0,
        clock: Callable[[], float] = time.time,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Wrap an already authenticated transport.

        Use ``with_application`` instead of calling this directly.

        Args:
            credentials: Application credentials
            http: Transport for all requests
            token: Valid access token obtained with ``credentials``
            url_builder: Maps endpoint descriptors to URLs
            timeout: Timeout the transport was built with
            token_leeway: Seconds of early expiry for the access token
            clock: Source of the current Unix time
            transport: Custom httpx transport, reused when rebuilding
        """
        self.credentials = credentials
        self.timeout_seconds = timeout
        self._http = http
        self._url_builder = url_builder or build_url
        self._token_leeway = token_leeway
        self._clock = clock
        self._transport = transport
        self._tokens = TokenStore(
            token,
            refresher=self._authenticate,
            clock=clock,
            leeway=token_leeway,
        )
        self._pipeline = RequestPipeline(http, credentials.api_key, self._tokens)

    @staticmethod
    def _build_http(
        timeout: float,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(timeout), transport=transport)

    def _authenticate(self) -> AccessToken:
        return authenticate(
            self._http,
            self._url_builder(ep.OauthToken()),
            self.credentials.client_id,
            self.credentials.client_secret,
            clock=self._clock,
        )

    @classmethod
    def with_application(
        cls,
        api_key: str,
        client_id: str,
        client_secret: str,
        base_url: str = API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        url_builder: Optional[UrlBuilder] = None,
        token_leeway: float = 0.0,
        clock: Callable[[], float] = time.time,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "Toornament":
        """
        Create a client and obtain its first access token.

        Args:
            api_key: Application API key
            client_id: Application client ID
            client_secret: Application client secret
            base_url: API root, ignored when ``url_builder`` is given
            timeout: Transport timeout in seconds
            url_builder: Custom endpoint-to-URL strategy
            token_leeway: Seconds of early expiry for the access token
            clock: Source of the current Unix time
            transport: Custom httpx transport

        Returns:
            Authenticated client

        Raises:
            AuthenticationError: If the initial token exchange fails
        """
        credentials = Credentials(
            api_key=api_key,
            client_id=client_id,
            client_secret=client_secret,
        )
        url_builder = url_builder or partial(build_url, base_url=base_url)
        http = cls._build_http(timeout, transport)
        try:
            token = authenticate(
                http,
                url_builder(ep.OauthToken()),
                client_id,
                client_secret,
                clock=clock,
            )
        except AuthenticationError:
            http.close()
            raise

        logger.info(f"Authenticated application client_id={client_id}")
        return cls(
            credentials,
            http,
            token,
            url_builder=url_builder,
            timeout=timeout,
            token_leeway=token_leeway,
            clock=clock,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs) -> "Toornament":
        """
        Create a client from loaded configuration.

        Args:
            config: Client configuration
            **kwargs: Extra arguments forwarded to ``with_application``

        Raises:
            AuthenticationError: If credentials are missing or rejected
        """
        if not config.is_complete:
            raise AuthenticationError(
                "api_key, client_id and client_secret are required "
                "(set them in the config file or TOORNAMENT_* env vars)"
            )
        return cls.with_application(
            config.api_key,
            config.client_id,
            config.client_secret,
            base_url=config.api_url,
            timeout=config.timeout,
            token_leeway=config.token_leeway_seconds,
            **kwargs,
        )

    def timeout(self, seconds: float) -> "Toornament":
        """
        Return a client using a new transport with the given timeout.

        This client's transport is closed; keep using the returned one.
        The current access token carries over.
        """
        if seconds <= 0:
            raise ValueError(f"timeout must be positive, got {seconds}")

        http = self._build_http(seconds, self._transport)
        client = Toornament(
            self.credentials,
            http,
            self._tokens.snapshot(),
            url_builder=self._url_builder,
            timeout=seconds,
            token_leeway=self._token_leeway,
            clock=self._clock,
            transport=self._transport,
        )
        self._http.close()
        logger.debug(f"Rebuilt transport with timeout={seconds}s")
        return client

    def close(self) -> None:
        """Close the HTTP transport."""
        self._http.close()

    def __enter__(self) -> "Toornament":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # =========================================================================
    # Token access
    # =========================================================================

    def current_token(self) -> str:
        """Return the stored access token without checking expiry."""
        return self._tokens.current_token()

    def fresh_token(self) -> str:
        """Return a non-expired access token, refreshing if needed."""
        return self._tokens.fresh_token()

    def refresh(self) -> bool:
        """
        Force a token refresh.

        Returns:
            True on success; on failure the previous token is kept
        """
        return self._tokens.refresh()

    # =========================================================================
    # Request helpers
    # =========================================================================

    def _handle_outcome(self, outcome: RequestOutcome, method: str, url: str) -> httpx.Response:
        """Return the response of a successful outcome or raise."""
        if isinstance(outcome, Success):
            return outcome.response

        if isinstance(outcome, RateLimited):
            logger.warning(f"Rate limited on {method} {url}, retry after {outcome.retry_after}ms")
            raise RateLimitError(
                "Rate limited",
                retry_after=outcome.retry_after,
                status_code=429,
            )

        if isinstance(outcome, ServiceRejected):
            message = "; ".join(err.message for err in outcome.errors) or "Service error"
            logger.error(f"API error {outcome.status_code} on {method} {url}: {message}")
            raise ServiceError(
                message,
                errors=outcome.errors,
                status_code=outcome.status_code,
            )

        if isinstance(outcome, TransportFailure):
            logger.error(
                f"API error {outcome.status_code} on {method} {url}, raw response: {outcome.body}"
            )
            reason = httpx.codes.get_reason_phrase(outcome.status_code) or "Unknown bad HTTP status"
            raise StatusError(
                reason,
                status_code=outcome.status_code,
                response_body=outcome.body,
            )

        raise TypeError(f"Unknown request outcome: {outcome!r}")

    def _request(
        self,
        method: str,
        endpoint: Endpoint,
        json: Optional[Any] = None,
    ) -> httpx.Response:
        url = self._url_builder(endpoint)
        outcome = self._pipeline.authenticated_request(method, url, json=json)
        return self._handle_outcome(outcome, method, url)

    @staticmethod
    def _parse(response: httpx.Response, model: Type[M]) -> M:
        try:
            return model.model_validate_json(response.content)
        except PydanticValidationError as e:
            raise SerializationError(
                f"Unexpected {model.__name__} payload: {e}",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    @staticmethod
    def _parse_list(response: httpx.Response, model: Type[M]) -> List[M]:
        try:
            return TypeAdapter(List[model]).validate_json(response.content)
        except PydanticValidationError as e:
            raise SerializationError(
                f"Unexpected list of {model.__name__} payload: {e}",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    # =========================================================================
    # Disciplines
    # =========================================================================

    def disciplines(self, discipline_id: Optional[str] = None) -> List[Discipline]:
        """
        Get all disciplines, or the one with the given ID.

        Endpoint: GET /v1/disciplines[/{id}]
        """
        if discipline_id is not None:
            logger.debug(f"Getting discipline with id: {discipline_id}")
            response = self._request("GET", ep.DisciplineById(discipline_id=discipline_id))
            return [self._parse(response, Discipline)]

        logger.debug("Getting all disciplines")
        response = self._request("GET", ep.AllDisciplines())
        return self._parse_list(response, Discipline)

    # =========================================================================
    # Tournaments
    # =========================================================================

    def tournaments(
        self,
        tournament_id: Optional[str] = None,
        with_streams: bool = False,
    ) -> List[Tournament]:
        """
        Get public tournaments, or the one with the given ID.

        Endpoint: GET /v1/tournaments[/{id}]?with_streams=
        """
        if tournament_id is not None:
            logger.debug(f"Getting tournament with id: {tournament_id}")
            response = self._request(
                "GET",
                ep.TournamentByIdGet(tournament_id=tournament_id, with_streams=with_streams),
            )
            return [self._parse(response, Tournament)]

        logger.debug("Getting all tournaments")
        response = self._request("GET", ep.AllTournaments(with_streams=with_streams))
        return self._parse_list(response, Tournament)

    def edit_tournament(self, tournament: Tournament) -> Tournament:
        """
        Update a tournament, or create it when it has no ID yet.

        Endpoint: PATCH /v1/tournaments/{id} or POST /v1/tournaments
        """
        if tournament.id is not None:
            logger.debug(f"Editing tournament: {tournament.id}")
            response = self._request(
                "PATCH",
                ep.TournamentByIdUpdate(tournament_id=tournament.id),
                json=tournament.to_payload(),
            )
        else:
            logger.debug(f"Creating tournament: {tournament.name}")
            response = self._request("POST", ep.TournamentCreate(), json=tournament.to_payload())
        return self._parse(response, Tournament)

    def delete_tournament(self, tournament_id: str) -> None:
        """
        Delete a tournament with its participants and matches.

        Endpoint: DELETE /v1/tournaments/{id}
        """
        logger.debug(f"Deleting tournament by id: {tournament_id}")
        self._request("DELETE", ep.TournamentByIdUpdate(tournament_id=tournament_id))

    def my_tournaments(self) -> List[Tournament]:
        """
        Get the tournaments the authenticated application has access to.

        Endpoint: GET /v1/me/tournaments
        """
        logger.debug("Getting my tournaments")
        response = self._request("GET", ep.MyTournaments())
        return self._parse_list(response, Tournament)

    # =========================================================================
    # Matches
    # =========================================================================

    def matches(
        self,
        tournament_id: str,
        match_id: Optional[str] = None,
        with_games: bool = False,
    ) -> List[Match]:
        """
        Get the matches of a tournament, or one match.

        Endpoint: GET /v1/tournaments/{id}/matches[/{match_id}]?with_games=
        """
        if match_id is not None:
            logger.debug(f"Getting match {match_id} of tournament {tournament_id}")
            response = self._request(
                "GET",
                ep.MatchByIdGet(
                    tournament_id=tournament_id,
                    match_id=match_id,
                    with_games=with_games,
                ),
            )
            return [self._parse(response, Match)]

        logger.debug(f"Getting matches by tournament id: {tournament_id}")
        response = self._request(
            "GET",
            ep.MatchesByTournament(tournament_id=tournament_id, with_games=with_games),
        )
        return self._parse_list(response, Match)

    def matches_by_discipline(
        self,
        discipline_id: str,
        match_filter: Optional[MatchFilter] = None,
    ) -> List[Match]:
        """
        Get matches of a discipline.

        Endpoint: GET /v1/disciplines/{id}/matches
        """
        logger.debug(f"Getting matches by discipline id: {discipline_id}")
        response = self._request(
            "GET",
            ep.MatchesByDiscipline(
                discipline_id=discipline_id,
                filter=match_filter or MatchFilter(),
            ),
        )
        return self._parse_list(response, Match)

    def update_match(self, tournament_id: str, match_id: str, match: Match) -> Match:
        """
        Update a match.

        Endpoint: PATCH /v1/tournaments/{id}/matches/{match_id}
        """
        logger.debug(f"Updating match {match_id} of tournament {tournament_id}")
        response = self._request(
            "PATCH",
            ep.MatchByIdUpdate(tournament_id=tournament_id, match_id=match_id),
            json=match.to_payload(),
        )
        return self._parse(response, Match)

    def match_result(self, tournament_id: str, match_id: str) -> MatchResult:
        """
        Get a match result.

        Endpoint: GET /v1/tournaments/{id}/matches/{match_id}/result
        """
        logger.debug(f"Getting result of match {match_id} of tournament {tournament_id}")
        response = self._request(
            "GET",
            ep.MatchResult(tournament_id=tournament_id, match_id=match_id),
        )
        return self._parse(response, MatchResult)

    def set_match_result(
        self,
        tournament_id: str,
        match_id: str,
        result: MatchResult,
    ) -> MatchResult:
        """
        Set a match result.

        Endpoint: PUT /v1/tournaments/{id}/matches/{match_id}/result
        """
        logger.debug(f"Setting result of match {match_id} of tournament {tournament_id}")
        response = self._request(
            "PUT",
            ep.MatchResult(tournament_id=tournament_id, match_id=match_id),
            json=result.to_payload(),
        )
        return self._parse(response, MatchResult)

    # =========================================================================
    # Games
    # =========================================================================

    def match_games(
        self,
        tournament_id: str,
        match_id: str,
        with_stats: bool = False,
    ) -> List[Game]:
        """
        Get the games of a match.

        Endpoint: GET /v1/tournaments/{id}/matches/{match_id}/games
        """
        logger.debug(f"Getting games of match {match_id} of tournament {tournament_id}")
        response = self._request(
            "GET",
            ep.MatchGames(tournament_id=tournament_id, match_id=match_id, with_stats=with_stats),
        )
        return self._parse_list(response, Game)

    def match_game(
        self,
        tournament_id: str,
        match_id: str,
        game_number: int,
        with_stats: bool = False,
    ) -> Game:
        """Endpoint: GET /v1/tournaments/{id}/matches/{match_id}/games/{number}"""
        logger.debug(f"Getting game {game_number} of match {match_id}")
        response = self._request(
            "GET",
            ep.MatchGameByNumberGet(
                tournament_id=tournament_id,
                match_id=match_id,
                game_number=game_number,
                with_stats=with_stats,
            ),
        )
        return self._parse(response, Game)

    def update_match_game(
        self,
        tournament_id: str,
        match_id: str,
        game_number: int,
        game: Game,
    ) -> Game:
        """Endpoint: PATCH /v1/tournaments/{id}/matches/{match_id}/games/{number}"""
        logger.debug(f"Updating game {game_number} of match {match_id}")
        response = self._request(
            "PATCH",
            ep.MatchGameByNumberUpdate(
                tournament_id=tournament_id,
                match_id=match_id,
                game_number=game_number,
            ),
            json=game.to_payload(),
        )
        return self._parse(response, Game)

    def match_game_result(
        self,
        tournament_id: str,
        match_id: str,
        game_number: int,
    ) -> MatchResult:
        """Endpoint: GET /v1/tournaments/{id}/matches/{match_id}/games/{number}/result"""
        logger.debug(f"Getting result of game {game_number} of match {match_id}")
        response = self._request(
            "GET",
            ep.MatchGameResultGet(
                tournament_id=tournament_id,
                match_id=match_id,
                game_number=game_number,
            ),
        )
        return self._parse(response, MatchResult)

    def update_match_game_result(
        self,
        tournament_id: str,
        match_id: str,
        game_number: int,
        result: MatchResult,
        update_match: bool = False,
    ) -> MatchResult:
        """
        Set a game result, optionally propagating it to the match.

        Endpoint: PUT /v1/tournaments/{id}/matches/{match_id}/games/{number}/result
        """
        logger.debug(f"Setting result of game {game_number} of match {match_id}")
        response = self._request(
            "PUT",
            ep.MatchGameResultUpdate(
                tournament_id=tournament_id,
                match_id=match_id,
                game_number=game_number,
                update_match=update_match,
            ),
            json=result.to_payload(),
        )
        return self._parse(response, MatchResult)

    # =========================================================================
    # Participants
    # =========================================================================

    def tournament_participants(
        self,
        tournament_id: str,
        participants_filter: Optional[TournamentParticipantsFilter] = None,
    ) -> List[Participant]:
        """Endpoint: GET /v1/tournaments/{id}/participants"""
        logger.debug(f"Getting participants of tournament {tournament_id}")
        response = self._request(
            "GET",
            ep.Participants(
                tournament_id=tournament_id,
                filter=participants_filter or TournamentParticipantsFilter(),
            ),
        )
        return self._parse_list(response, Participant)

    def create_tournament_participant(
        self,
        tournament_id: str,
        participant: Participant,
    ) -> Participant:
        """Endpoint: POST /v1/tournaments/{id}/participants"""
        logger.debug(f"Creating a participant for tournament {tournament_id}")
        response = self._request(
            "POST",
            ep.ParticipantCreate(tournament_id=tournament_id),
            json=participant.to_payload(),
        )
        return self._parse(response, Participant)

    def update_tournament_participants(
        self,
        tournament_id: str,
        participants: List[Participant],
    ) -> List[Participant]:
        """
        Replace the whole participant list.

        Endpoint: PUT /v1/tournaments/{id}/participants
        """
        logger.debug(f"Replacing {len(participants)} participants of tournament {tournament_id}")
        response = self._request(
            "PUT",
            ep.ParticipantsUpdate(tournament_id=tournament_id),
            json=[p.to_payload() for p in participants],
        )
        return self._parse_list(response, Participant)

    def tournament_participant(self, tournament_id: str, participant_id: str) -> Participant:
        """Endpoint: GET /v1/tournaments/{id}/participants/{participant_id}"""
        logger.debug(f"Getting participant {participant_id} of tournament {tournament_id}")
        response = self._request(
            "GET",
            ep.ParticipantById(tournament_id=tournament_id, participant_id=participant_id),
        )
        return self._parse(response, Participant)

    def update_tournament_participant(
        self,
        tournament_id: str,
        participant_id: str,
        participant: Participant,
    ) -> Participant:
        """Endpoint: PATCH /v1/tournaments/{id}/participants/{participant_id}"""
        logger.debug(f"Updating participant {participant_id} of tournament {tournament_id}")
        response = self._request(
            "PATCH",
            ep.ParticipantById(tournament_id=tournament_id, participant_id=participant_id),
            json=participant.to_payload(),
        )
        return self._parse(response, Participant)

    def delete_tournament_participant(self, tournament_id: str, participant_id: str) -> None:
        """Endpoint: DELETE /v1/tournaments/{id}/participants/{participant_id}"""
        logger.debug(f"Deleting participant {participant_id} of tournament {tournament_id}")
        self._request(
            "DELETE",
            ep.ParticipantById(tournament_id=tournament_id, participant_id=participant_id),
        )

    # =========================================================================
    # Permissions
    # =========================================================================

    def tournament_permissions(self, tournament_id: str) -> List[Permission]:
        """Endpoint: GET /v1/tournaments/{id}/permissions"""
        logger.debug(f"Getting permissions of tournament {tournament_id}")
        response = self._request("GET", ep.Permissions(tournament_id=tournament_id))
        return self._parse_list(response, Permission)

    def create_tournament_permission(
        self,
        tournament_id: str,
        permission: Permission,
    ) -> Permission:
        """Endpoint: POST /v1/tournaments/{id}/permissions"""
        logger.debug(f"Creating a permission for tournament {tournament_id}")
        response = self._request(
            "POST",
            ep.Permissions(tournament_id=tournament_id),
            json=permission.to_payload(),
        )
        return self._parse(response, Permission)

    def tournament_permission(self, tournament_id: str, permission_id: str) -> Permission:
        """Endpoint: GET /v1/tournaments/{id}/permissions/{permission_id}"""
        logger.debug(f"Getting permission {permission_id} of tournament {tournament_id}")
        response = self._request(
            "GET",
            ep.PermissionById(tournament_id=tournament_id, permission_id=permission_id),
        )
        return self._parse(response, Permission)

    def update_tournament_permission_attributes(
        self,
        tournament_id: str,
        permission_id: str,
        attributes: Set[PermissionAttribute],
    ) -> Permission:
        """Endpoint: PATCH /v1/tournaments/{id}/permissions/{permission_id}"""
        logger.debug(f"Updating attributes of permission {permission_id} of tournament {tournament_id}")
        response = self._request(
            "PATCH",
            ep.PermissionById(tournament_id=tournament_id, permission_id=permission_id),
            json={"attributes": sorted(attr.value for attr in attributes)},
        )
        return self._parse(response, Permission)

    def delete_tournament_permission(self, tournament_id: str, permission_id: str) -> None:
        """Endpoint: DELETE /v1/tournaments/{id}/permissions/{permission_id}"""
        logger.debug(f"Deleting permission {permission_id} of tournament {tournament_id}")
        self._request(
            "DELETE",
            ep.PermissionById(tournament_id=tournament_id, permission_id=permission_id),
        )

    # =========================================================================
    # Stages and videos
    # =========================================================================

    def tournament_stages(self, tournament_id: str) -> List[Stage]:
        """Endpoint: GET /v1/tournaments/{id}/stages"""
        logger.debug(f"Getting stages of tournament {tournament_id}")
        response = self._request("GET", ep.Stages(tournament_id=tournament_id))
        return self._parse_list(response, Stage)

    def tournament_videos(
        self,
        tournament_id: str,
        videos_filter: Optional[TournamentVideosFilter] = None,
    ) -> List[Video]:
        """Endpoint: GET /v1/tournaments/{id}/videos"""
        logger.debug(f"Getting videos of tournament {tournament_id}")
        response = self._request(
            "GET",
            ep.Videos(
                tournament_id=tournament_id,
                filter=videos_filter or TournamentVideosFilter(),
            ),
        )
        return self._parse_list(response, Video)
