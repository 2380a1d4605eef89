"""Login form extraction for the kicktipp.de login page."""

from urllib.parse import urljoin

from bs4 import BeautifulSoup

from kicktipp_agent.src.models.session import LoginForm
from kicktipp_agent.src.utils.errors import NoFormFound

LOGIN_FORM_MARKER = "form#loginFormular"


def extract_login_form(html: str, page_url: str, base_url: str) -> LoginForm:
    """
    Parse the first form of a login page.

    Args:
        html: Raw HTML of the login page
        page_url: URL the page was fetched from, used when the form has no action
        base_url: Site origin that relative actions are resolved against

    Returns:
        LoginForm with the resolved action URL and the hidden fields

    Raises:
        NoFormFound: If the document contains no form element
    """
    soup = BeautifulSoup(html, "html.parser")
    form = soup.find("form")
    if form is None:
        raise NoFormFound()

    action = (form.get("action") or "").strip()
    if not action:
        action_url = page_url
    elif action.startswith("http"):
        action_url = action
    else:
        action_url = urljoin(base_url.rstrip("/") + "/", action)

    hidden_fields = {}
    for hidden_input in form.select('input[type="hidden" i]'):
        name = hidden_input.get("name")
        if not name or name in hidden_fields:
            continue
        hidden_fields[name] = hidden_input.get("value") or ""

    return LoginForm(action_url=action_url, hidden_fields=hidden_fields)


def has_login_form_marker(html: str) -> bool:
    soup = BeautifulSoup(html, "html.parser")
    return soup.select_one(LOGIN_FORM_MARKER) is not None
