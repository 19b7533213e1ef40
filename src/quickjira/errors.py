"""Error types shared by the Jira and generation clients.

Three kinds are distinguished so callers can present them differently:
transport/HTTP failures, malformed responses, and caller precondition
failures.
"""


class QuickJiraError(Exception):
    """Base class for all quickjira errors."""

    pass


class APIError(QuickJiraError):
    """Raised when a remote API answers with a non-success status.

    Carries the HTTP status code and the raw response body text so the
    caller can show a diagnostic. Never retried.
    """

    service = "API"

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"{self.service} API error: {status_code} {body}".rstrip())


class JiraAPIError(APIError):
    """Non-2xx response from the Jira REST or Agile API."""

    service = "Jira"


class GenerationAPIError(APIError):
    """Failure reported by the text generation provider."""

    service = "OpenAI"


class MalformedResponseError(QuickJiraError):
    """Raised when a response cannot be parsed into the expected shape."""

    def __init__(self, detail: str, raw: str | None = None):
        self.detail = detail
        self.raw = raw
        super().__init__(detail)


class PreconditionError(QuickJiraError, ValueError):
    """Raised when required caller input is missing or empty."""

    pass
