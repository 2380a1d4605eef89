"""Errors raised by the kicktipp login session and the history CSV handling."""


class KicktippError(Exception):
    """Base class for all kicktipp agent errors."""


class LoginError(KicktippError):
    """The login protocol failed; the session stays logged out."""


class InvalidCredentials(LoginError):
    def __init__(self, message: str = "Invalid Kicktipp credentials configured"):
        super().__init__(message)


class NoFormFound(LoginError):
    def __init__(self, message: str = "Could not find login form on the page"):
        super().__init__(message)


class LoginPageUnreachable(LoginError):
    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(status_code)

    def __str__(self) -> str:
        return f"Failed to access login page: {self.status_code}"


class LoginSubmissionFailed(LoginError):
    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(status_code)

    def __str__(self) -> str:
        return f"Login request failed: {self.status_code}"


class LoginRejected(LoginError):
    def __init__(self, final_url: str):
        self.final_url = final_url
        super().__init__(final_url)

    def __str__(self) -> str:
        return f"Kicktipp login failed - check credentials (ended on {self.final_url})"


class CsvError(KicktippError, ValueError):
    """Scraped tabular data could not be parsed."""


class MalformedRow(CsvError):
    def __init__(self, line_number: int, expected: int, actual: int):
        self.line_number = line_number
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Line {line_number}: expected {expected} fields, got {actual}"
        )
