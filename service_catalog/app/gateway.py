"""
Request gateway for the catalog service.

Every catalog route is registered through :meth:`RequestGateway.guard`, which
authenticates the caller, asks the authorization engine for a decision and
only then dispatches to the route handler. A request moves
``received -> authorized -> dispatched`` or ends in ``received -> rejected``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from fastapi import HTTPException, Request
from fastapi.security import HTTPBasic

from shared.logging import get_logger, set_user_context
from shared.errors import AuthenticationError, AuthorizationError
from shared.metrics import MetricsCollector
from .security.directory import Principal, UserDirectory
from .security.engine import AuthorizationEngine


Handler = Callable[[Request], Awaitable[Any]]


class GatewayState(str, Enum):
    """Per-request gateway states."""
    RECEIVED = "received"
    AUTHORIZED = "authorized"
    REJECTED = "rejected"
    DISPATCHED = "dispatched"


@dataclass(frozen=True)
class Route:
    """One entry of the dispatch table."""
    method: str
    path: str
    name: str
    handler: Handler
    media_type: str = "application/json"


def build_routes(handlers) -> List[Route]:
    """Ordered dispatch table for the catalog routes."""
    return [
        Route("GET", "/movies", "all_movies", handlers.all),
        Route("GET", "/movies/{id}", "movie_by_id", handlers.by_id),
        Route("GET", "/movies/{id}/events", "movie_events", handlers.events, "text/event-stream"),
    ]


class RequestGateway:
    """Authenticates, authorizes and dispatches catalog requests."""

    def __init__(
        self,
        directory: UserDirectory,
        engine: AuthorizationEngine,
        metrics: Optional[MetricsCollector] = None
    ):
        self.directory = directory
        self.engine = engine
        self.metrics = metrics
        self.logger = get_logger("catalog.gateway")
        self.security = HTTPBasic(auto_error=False, realm="fluxflix")

    async def authenticate(self, request: Request) -> Optional[Principal]:
        """Resolve HTTP Basic credentials to a principal, or None."""
        try:
            credentials = await self.security(request)
        except HTTPException:
            # Malformed Basic header
            return None

        if credentials is None:
            return None

        return self.directory.authenticate(credentials.username, credentials.password)

    async def authorize(self, request: Request) -> Principal:
        """Move a received request to authorized, or reject it.

        Raises AuthenticationError when no principal can be resolved and
        AuthorizationError when the principal lacks the required role.
        """
        path = request.url.path
        self._transition(request, GatewayState.RECEIVED, path=path)

        principal = await self.authenticate(request)
        decision = self.engine.evaluate(principal, path)
        if self.metrics:
            self.metrics.record_authorization(decision.allowed)

        if not decision.allowed:
            self._transition(
                request,
                GatewayState.REJECTED,
                path=path,
                username=principal.username if principal else None,
                reason=decision.reason
            )
            if principal is None:
                raise AuthenticationError(
                    "Valid credentials required",
                    details={"path": path}
                )
            raise AuthorizationError(
                decision.reason,
                details={"path": path, "username": principal.username}
            )

        set_user_context(principal.username)
        request.state.principal = principal
        self._transition(request, GatewayState.AUTHORIZED, path=path, username=principal.username)
        return principal

    def guard(self, route: Route) -> Handler:
        """Wrap a route handler so it only runs for authorized requests."""

        async def endpoint(request: Request):
            await self.authorize(request)
            self._transition(request, GatewayState.DISPATCHED, path=request.url.path, route=route.name)
            return await route.handler(request)

        endpoint.__name__ = route.name
        endpoint.__doc__ = route.handler.__doc__
        return endpoint

    def _transition(self, request: Request, state: GatewayState, **fields):
        request.state.gateway_state = state
        if state == GatewayState.REJECTED:
            self.logger.warning("Request rejected", state=state.value, **fields)
        elif state == GatewayState.DISPATCHED:
            self.logger.info("Request dispatched", state=state.value, **fields)
        else:
            self.logger.debug("Gateway state change", state=state.value, **fields)
