from __future__ import annotations

import logging

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from document_flow.errors import FetchError
from document_flow.models import RelationSet
from document_flow.settings import settings

logger = logging.getLogger(__name__)

# Retried before a fetch is reported as failed; status errors are not transient.
TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)


class RelationClient:
    """Document flow relationship API client.

    GET {base_url}{path}?$sourceid=<object id>&$sourcetype=<type code>
    returns {"value": [relation, ...]}. Authenticates with HTTP basic auth.
    One client (and one connection pool) is shared by every session of a process.
    """

    def __init__(
        self,
        base_url: str | None = None,
        path: str | None = None,
        username: str | None = None,
        password: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        max_attempts: int | None = None,
    ):
        self._path = path or settings.api_path
        self._max_attempts = max_attempts or settings.api_max_attempts
        username = username if username is not None else settings.api_username
        password = password if password is not None else settings.api_password

        auth = None
        if username:
            auth = httpx.BasicAuth(username, password or "")
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            headers={"Content-Type": "application/json"},
            auth=auth,
            transport=transport,
            timeout=httpx.Timeout(settings.api_timeout, connect=5.0),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=5),
            follow_redirects=True,
        )

    async def aclose(self):
        await self._client.aclose()

    async def _get(self, params: dict[str, str]) -> httpx.Response:
        retrying = AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential_jitter(initial=0.2, max=5.0),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
        )
        async for attempt in retrying:
            with attempt:
                r = await self._client.get(self._path, params=params)
                r.raise_for_status()
        return r

    async def fetch(self, object_id: str, object_type: str) -> RelationSet:
        params = {"$sourceid": object_id, "$sourcetype": object_type}
        try:
            r = await self._get(params)
            return RelationSet.model_validate(r.json())
        except (httpx.HTTPError, ValueError) as e:  # ValueError covers bad JSON and ValidationError
            logger.error("Relation fetch failed for %s (type %s): %s", object_id, object_type, e)
            raise FetchError(object_id=object_id) from e
