"""Asana REST API client.

Turns :class:`~asana_client.models.Model` declarations into GET requests
with the matching ``opt_fields`` selection and validates the ``data``
envelope of each response back into the declared model.
"""

import time
from dataclasses import dataclass

import httpx
import pydantic
import structlog

from .models import Envelope, ListEnvelope, M, Model

logger = structlog.get_logger(__name__)

API_VERSION = "1.0"

DEFAULT_BASE_URL = "https://app.asana.com"

DEFAULT_TIMEOUT = 30.0

USER_AGENT = "asana-client-py/0.1.0"


class AsanaError(Exception):
    """Base class for all client errors."""


class ConfigurationError(AsanaError):
    """Raised when the client or its transport cannot be set up."""


class TransportError(AsanaError):
    """Raised when a request fails or the API answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(AsanaError):
    """Raised when a response body does not match the expected envelope."""


def build_path(model: type[Model], gid: str | None = None, scope: str = "") -> str:
    """Build the request path relative to the API root.

    Args:
        model: Model class whose endpoint is requested.
        gid: Entity id for single-object requests, None for collections.
        scope: Relational prefix such as "projects/123/", or "".

    Returns:
        Path like "projects/123/sections/456" or "sections/".
    """
    path = f"{scope}{model.endpoint()}/"
    if gid is not None:
        path += gid
    return path


def build_params(model: type[Model]) -> dict[str, str]:
    """Build the query parameters selecting the model's fields and relations."""
    return {"opt_fields": model.opt_fields()}


def scope_prefix(parent: type[Model], gid: str) -> str:
    """Return the relational prefix for requests nested under a parent entity."""
    return f"{parent.endpoint()}/{gid}/"


@dataclass(frozen=True)
class ScopedRequest:
    """Request builder bound to a parent entity.

    Created by :meth:`AsanaClient.scoped`. Holds the scope itself instead of
    storing it on the client, so several scoped calls may share one client
    concurrently.
    """

    client: "AsanaClient"
    scope: str

    async def get(self, model: type[M], gid: str) -> M:
        return await self.client._fetch_one(model, gid, self.scope)

    async def list(self, model: type[M]) -> list[M]:
        return await self.client._fetch_many(model, self.scope)


class AsanaClient:
    """HTTP client for the Asana REST API.

    Holds one long-lived ``httpx.AsyncClient`` carrying the bearer token and
    a fixed User-Agent. Calls can be nested under a parent entity either with
    :meth:`scope_under` (sets a pending scope consumed by the next call) or
    with :meth:`scoped` (returns an immutable :class:`ScopedRequest`).

    The pending scope makes an instance single-owner: concurrent tasks
    sharing one client should use :meth:`scoped` instead.
    Can be used as an async context manager for automatic cleanup.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = API_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the REST API client.

        Args:
            token: Personal access token or OAuth bearer token.
            base_url: Asana host (default: https://app.asana.com).
            api_version: API version segment (default: 1.0).
            timeout: Request timeout in seconds (default: 30.0).
            user_agent: Client identifier sent with every request.
            transport: Optional httpx transport, mainly for tests.

        Raises:
            ValueError: If token is empty or timeout is not positive.
            ConfigurationError: If the HTTP transport cannot be constructed.
        """
        if not token:
            msg = "token cannot be empty"
            raise ValueError(msg)
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)

        self.base_url = f"{base_url.rstrip('/')}/api/{api_version}/"
        self._token = token
        self._pending_scope = ""

        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._token}",
            "User-Agent": user_agent,
        }

        try:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=timeout,
                transport=transport,
            )
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            msg = f"Cannot build HTTP transport for {self.base_url}"
            raise ConfigurationError(msg) from exc

    @classmethod
    def connect(cls, token: str, **kwargs) -> "AsanaClient":
        """Create a client with an empty pending scope.

        Args:
            token: Personal access token or OAuth bearer token.
            **kwargs: Passed through to :class:`AsanaClient`.

        Returns:
            Connected client.
        """
        client = cls(token, **kwargs)
        logger.info("Created Asana client", base_url=client.base_url)
        return client

    @property
    def pending_scope(self) -> str:
        """Relational prefix the next get/list call will use, or ""."""
        return self._pending_scope

    async def __aenter__(self):
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager and close the transport."""
        await self.aclose()

    async def aclose(self):
        """Close the HTTP client if open."""
        if not self._client.is_closed:
            await self._client.aclose()

    def scope_under(self, parent: type[Model], gid: str) -> "AsanaClient":
        """Nest the next request under a parent entity.

        Sets the pending scope to ``{parent endpoint}/{gid}/``; the next
        :meth:`get` or :meth:`list` consumes it. No request is made.

        Returns:
            This client, for chaining.
        """
        self._pending_scope = scope_prefix(parent, gid)
        return self

    def scoped(self, parent: type[Model], gid: str) -> ScopedRequest:
        """Return a request builder nested under a parent entity.

        Unlike :meth:`scope_under`, the client itself is left untouched.
        """
        return ScopedRequest(client=self, scope=scope_prefix(parent, gid))

    def _take_scope(self) -> str:
        scope, self._pending_scope = self._pending_scope, ""
        return scope

    async def _request(
        self,
        model: type[Model],
        gid: str | None,
        scope: str,
    ) -> httpx.Response:
        """Make a GET request to the Asana REST API.

        Args:
            model: Model class selecting endpoint and fields.
            gid: Entity id, or None for a collection.
            scope: Relational prefix, or "".

        Returns:
            Successful (2xx) response.

        Raises:
            TransportError: If the URL is invalid, the request fails or it
                returns a non-2xx status.
        """
        path = build_path(model, gid, scope)
        params = build_params(model)
        logger.info("API request", method="GET", url=f"{self.base_url}{path}", params=params)

        start_time = time.time()
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.exception(
                "API request failed",
                status_code=exc.response.status_code,
                duration_seconds=round(time.time() - start_time, 3),
            )
            msg = f"GET {path} returned HTTP {exc.response.status_code}"
            raise TransportError(msg, status_code=exc.response.status_code) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.exception(
                "API request failed",
                duration_seconds=round(time.time() - start_time, 3),
            )
            msg = f"GET {path} failed: {exc}"
            raise TransportError(msg) from exc

        logger.debug(
            "API request completed",
            duration_seconds=round(time.time() - start_time, 3),
        )
        return response

    @staticmethod
    def _decode(envelope: type[pydantic.BaseModel], response: httpx.Response):
        """Validate a response body against an envelope type.

        Raises:
            DecodeError: If the body is not JSON or does not match the envelope.
        """
        try:
            return envelope.model_validate_json(response.content)
        except pydantic.ValidationError as exc:
            logger.exception("Failed to decode API response", url=str(response.url))
            msg = f"Unexpected response shape from {response.url}"
            raise DecodeError(msg) from exc

    async def _fetch_one(self, model: type[M], gid: str, scope: str) -> M:
        response = await self._request(model, gid, scope)
        return self._decode(Envelope[model], response).data

    async def _fetch_many(self, model: type[M], scope: str) -> list[M]:
        response = await self._request(model, None, scope)
        return self._decode(ListEnvelope[model], response).data

    async def get(self, model: type[M], gid: str) -> M:
        """Fetch a single entity by id.

        Consumes the pending scope, if any, before the request is sent.

        Args:
            model: Model class to request and decode into.
            gid: Entity id, or an alias the API accepts such as "me".

        Returns:
            Validated model instance.

        Raises:
            TransportError: If the HTTP request fails.
            DecodeError: If the response does not match the model.
        """
        scope = self._take_scope()
        return await self._fetch_one(model, gid, scope)

    async def list(self, model: type[M]) -> list[M]:
        """Fetch every entity of a type, in response order.

        Consumes the pending scope, if any, before the request is sent.

        Raises:
            TransportError: If the HTTP request fails.
            DecodeError: If the response does not match the model.
        """
        scope = self._take_scope()
        return await self._fetch_many(model, scope)
