"""Login session for kicktipp.de.

Keeps track of whether the cookie jar of the wrapped ``httpx.AsyncClient``
holds an authenticated session and runs the form based login when it does not.
Only one login runs at a time; callers that queued up behind a running login
share its outcome instead of starting their own.
"""

import asyncio
import copy
import logging
from typing import Optional

import httpx

from kicktipp_agent.src.models.session import KicktippCredentials, SessionState
from kicktipp_agent.src.utils.errors import (
    InvalidCredentials,
    LoginPageUnreachable,
    LoginRejected,
    LoginSubmissionFailed,
)
from kicktipp_agent.src.utils.login_form import extract_login_form, has_login_form_marker

logger = logging.getLogger(__name__)

LOGIN_PATH = "/info/profil/login"
# any final URL containing this is treated as "still on / sent back to the login page"
LOGIN_PATH_FRAGMENT = "/login"


class LoginSession:
    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: KicktippCredentials,
        base_url: str,
    ):
        self._client = client
        self._credentials = credentials
        self._base_url = base_url.rstrip("/")
        self._lock = asyncio.Lock()
        self._state = SessionState.LOGGED_OUT
        self._completed_attempts = 0
        self._last_error: Optional[Exception] = None
        self.login_count = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_logged_in(self) -> bool:
        return self._state is SessionState.LOGGED_IN

    @property
    def login_url(self) -> str:
        return f"{self._base_url}{LOGIN_PATH}"

    async def ensure_logged_in(self) -> None:
        """
        Log in unless the session is already authenticated.

        Raises:
            LoginError: If the login attempt this caller ran, or waited for, failed
            httpx.HTTPError: Transport faults while talking to the login pages
        """
        if self.is_logged_in:
            return

        seen_attempts = self._completed_attempts
        async with self._lock:
            if self.is_logged_in:
                return
            if self._completed_attempts != seen_attempts and self._last_error is not None:
                # a login finished while we were waiting for the lock, every waiter
                # raises its own copy of that error
                raise copy.copy(self._last_error) from self._last_error
            await self._login()

    def mark_expired(self) -> None:
        if self._state is not SessionState.LOGGED_OUT:
            logger.info("Kicktipp session marked as expired")
        self._state = SessionState.LOGGED_OUT

    async def _login(self) -> None:
        self._state = SessionState.LOGGING_IN
        self.login_count += 1
        try:
            await self._perform_login()
        except Exception as e:
            logger.error(f"Kicktipp authentication failed: {e}")
            self._last_error = e
            self._completed_attempts += 1
            raise
        else:
            logger.info("Kicktipp authentication successful")
            self._state = SessionState.LOGGED_IN
            self._last_error = None
            self._completed_attempts += 1
        finally:
            # also reached on cancellation
            if self._state is SessionState.LOGGING_IN:
                self._state = SessionState.LOGGED_OUT

    async def _perform_login(self) -> None:
        if not self._credentials.is_valid:
            raise InvalidCredentials()

        logger.info("Performing Kicktipp authentication...")

        page_response = await self._client.get(self.login_url, follow_redirects=True)
        if not page_response.is_success:
            raise LoginPageUnreachable(page_response.status_code)

        form = extract_login_form(
            page_response.text, str(page_response.url), self._base_url
        )

        login_response = await self._client.post(
            form.action_url,
            data=form.build_payload(self._credentials),
            follow_redirects=True,
        )
        if not login_response.is_success:
            raise LoginSubmissionFailed(login_response.status_code)

        final_url = str(login_response.url)
        if LOGIN_PATH_FRAGMENT in final_url:
            raise LoginRejected(final_url)
        if has_login_form_marker(login_response.text):
            raise LoginRejected(final_url)
