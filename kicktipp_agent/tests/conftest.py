import asyncio
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from dotenv import load_dotenv

from kicktipp_agent.src.models.session import KicktippCredentials
from kicktipp_agent.src.utils.kicktipp_client import KicktippClient

project_root = Path(__file__).parent.parent.parent
load_dotenv(project_root / ".env")

TEST_DATA_DIR = Path(__file__).parent.parent / "test_data"
BASE_URL = "https://www.kicktipp.de"
LOGIN_PATH = "/info/profil/login"
LOGIN_ACTION_PATH = "/info/profil/loginaction"
LANDING_PATH = "/meine-tipprunden"


def load_fixture(name: str) -> str:
    return (TEST_DATA_DIR / name).read_text(encoding="utf-8")


class FakeKicktippSite:
    """
    Stands in for kicktipp.de behind an httpx.MockTransport.

    Successful logins redirect to the landing page and hand out a new session
    cookie each time. Other pages require the current session cookie, requests
    without it are redirected to the login page. Authenticated requests answer
    200 unless a status was queued for them.
    """

    LOGIN_PATH = LOGIN_PATH
    LOGIN_ACTION_PATH = LOGIN_ACTION_PATH
    LANDING_PATH = LANDING_PATH

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.login_page = load_fixture("login_form.html")
        self.login_page_status = 200
        self.login_action_status: Optional[int] = None
        self.accept_login = True
        self.landing_page = load_fixture("login_success.html")
        self.login_delay = 0.0
        self.logins = 0
        self.session_expired = False
        self.page_statuses: Dict[str, List[int]] = {}
        self.page_redirects: Dict[str, List[str]] = {}
        self.page_errors: Dict[str, Exception] = {}

    def queue_status(self, path: str, *statuses: int) -> None:
        self.page_statuses.setdefault(path, []).extend(statuses)

    def queue_redirect(self, path: str, location: str) -> None:
        self.page_redirects.setdefault(path, []).append(location)

    @property
    def session_cookie(self) -> str:
        return f"login=token{self.logins}"

    def is_authenticated(self, request: httpx.Request) -> bool:
        if self.logins == 0 or self.session_expired:
            return False
        cookies = request.headers.get("cookie", "").split("; ")
        return self.session_cookie in cookies

    @staticmethod
    def form_data(request: httpx.Request) -> Dict[str, str]:
        parsed = parse_qs(request.content.decode(), keep_blank_values=True)
        return {key: values[0] for key, values in parsed.items()}

    def requests_to(self, path: str, method: Optional[str] = None) -> List[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.url.path == path and (method is None or request.method == method)
        ]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == LOGIN_PATH:
            return httpx.Response(self.login_page_status, html=self.login_page)

        if path == LOGIN_ACTION_PATH and request.method == "POST":
            if self.login_delay:
                await asyncio.sleep(self.login_delay)
            if self.login_action_status is not None:
                return httpx.Response(self.login_action_status, text="error")
            if not self.accept_login:
                return httpx.Response(200, html=load_fixture("login_failed.html"))
            self.logins += 1
            self.session_expired = False
            return httpx.Response(
                302,
                headers={
                    "Location": LANDING_PATH,
                    "Set-Cookie": f"{self.session_cookie}; Path=/",
                },
            )

        if path == LANDING_PATH:
            return httpx.Response(200, html=self.landing_page)

        if not self.is_authenticated(request):
            return httpx.Response(302, headers={"Location": LOGIN_PATH})

        if path in self.page_errors:
            raise self.page_errors[path]

        redirects = self.page_redirects.get(path)
        if redirects:
            return httpx.Response(302, headers={"Location": redirects.pop(0)})

        statuses = self.page_statuses.get(path)
        status = statuses.pop(0) if statuses else 200
        return httpx.Response(status, text=f"page {path}")


@pytest.fixture
def credentials() -> KicktippCredentials:
    return KicktippCredentials(username="testuser", password="testpassword")


@pytest.fixture
def fake_site() -> FakeKicktippSite:
    return FakeKicktippSite()


@pytest_asyncio.fixture
async def http_client(fake_site):
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(fake_site.handler), follow_redirects=True
    ) as client:
        yield client


@pytest.fixture
def kicktipp_client(credentials, http_client) -> KicktippClient:
    return KicktippClient(credentials, base_url=BASE_URL, client=http_client)
