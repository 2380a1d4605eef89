from enum import Enum
from typing import Dict
from pydantic import BaseModel, ConfigDict, Field

# form field names of the kicktipp login form
USERNAME_FIELD = "kennung"
PASSWORD_FIELD = "passwort"


class SessionState(str, Enum):
    LOGGED_OUT = "logged_out"
    LOGGING_IN = "logging_in"
    LOGGED_IN = "logged_in"


class KicktippCredentials(BaseModel):
    """Username/password pair used to log in to kicktipp.de."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str = Field(repr=False)

    @property
    def is_valid(self) -> bool:
        return bool(self.username) and bool(self.password)


class LoginForm(BaseModel):
    """Login form parsed from a freshly fetched login page."""

    action_url: str
    hidden_fields: Dict[str, str] = Field(default_factory=dict)

    def build_payload(self, credentials: KicktippCredentials) -> Dict[str, str]:
        # credentials first, hidden fields (e.g. _charset_) appended
        payload = {
            USERNAME_FIELD: credentials.username,
            PASSWORD_FIELD: credentials.password,
        }
        for name, value in self.hidden_fields.items():
            payload.setdefault(name, value)
        return payload

