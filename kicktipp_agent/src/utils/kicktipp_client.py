"""Authenticated HTTP client for kicktipp.de pages."""

import logging
from typing import Any, Dict, Optional

import httpx

from kicktipp_agent.src.models.session import KicktippCredentials
from kicktipp_agent.src.utils.kicktipp_session import LOGIN_PATH_FRAGMENT, LoginSession
from kicktipp_agent.src.utils.settings import KicktippSettings, get_setting

logger = logging.getLogger(__name__)


class KicktippClient:
    """
    Sends requests to kicktipp.de through a logged in session.

    Every request first makes sure the session is authenticated. When the site
    answers with 401/403 or bounces the request to the login page, the session is
    marked expired, logged in again and the request is replayed once.
    """

    DEFAULT_BASE_URL = "https://www.kicktipp.de"
    DEFAULT_HEADERS = {
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
        "Accept": "text/html,application/xhtml+xml",
    }
    EXPIRED_STATUS_CODES = (401, 403)

    def __init__(
        self,
        credentials: KicktippCredentials,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers=self.DEFAULT_HEADERS,
            follow_redirects=True,
        )
        self.session = LoginSession(self._client, credentials, self.base_url)

    @classmethod
    def from_settings(
        cls, settings: Optional[KicktippSettings] = None
    ) -> "KicktippClient":
        settings = settings or get_setting(KicktippSettings)
        return cls(
            credentials=settings.to_credentials(),
            base_url=settings.base_url,
            timeout=settings.timeout,
        )

    async def __aenter__(self) -> "KicktippClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def send(self, request: httpx.Request) -> httpx.Response:
        """
        Send a request, logging in first and re-authenticating once on expiry.

        Args:
            request: Request to forward, the session cookie is added unless it
                already carries a Cookie header

        Returns:
            The response of the request, or of its single retry after a re-login
        """
        await self.session.ensure_logged_in()
        if "Cookie" not in request.headers:
            self._client.cookies.set_cookie_header(request)

        # keep a copy of the body, the retry needs to send it again
        body = await request.aread()
        response = await self._client.send(request, follow_redirects=True)
        if not self._is_session_expired(response):
            return response

        logger.warning("Authentication may have expired, attempting re-login...")
        await response.aclose()
        self.session.mark_expired()
        await self.session.ensure_logged_in()

        retry_request = self._clone_request(request, body)
        return await self._client.send(retry_request, follow_redirects=True)

    async def get(
        self, path: str, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        # cookies are attached when the request is built
        await self.session.ensure_logged_in()
        request = self._client.build_request("GET", self.url(path), params=params)
        return await self.send(request)

    async def post(
        self, path: str, data: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        await self.session.ensure_logged_in()
        request = self._client.build_request("POST", self.url(path), data=data)
        return await self.send(request)

    async def get_page(self, path: str) -> str:
        response = await self.get(path)
        response.raise_for_status()
        return response.text

    def _is_session_expired(self, response: httpx.Response) -> bool:
        if response.status_code in self.EXPIRED_STATUS_CODES:
            return True
        return LOGIN_PATH_FRAGMENT in str(response.url)

    def _clone_request(self, request: httpx.Request, body: bytes) -> httpx.Request:
        # the old Cookie header belongs to the expired session, take the jar's current one
        headers = request.headers.copy()
        headers.pop("Cookie", None)
        clone = httpx.Request(
            method=request.method,
            url=request.url,
            headers=headers,
            content=body,
            extensions=request.extensions,
        )
        self._client.cookies.set_cookie_header(clone)
        return clone
