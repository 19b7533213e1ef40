"""Jira Cloud REST client.

Wraps the REST v3 and Agile 1.0 endpoints used to search, create and assign
tickets. Every call authenticates with an email + API token pair and turns
any non-2xx response into a JiraAPIError carrying the status and body.
"""

import asyncio
import base64
from dataclasses import dataclass
from typing import Any

import httpx

from ..errors import JiraAPIError, MalformedResponseError, PreconditionError, QuickJiraError
from ..logging import PerformanceTimer, get_logger
from .models import Board, Issue, IssueType, Project, Sprint, User
from .query import ALL_PROJECTS, CURRENT_USER, build_jql

logger = get_logger("jira")

ISSUE_FIELDS = [
    "summary",
    "status",
    "assignee",
    "issuetype",
    "priority",
    "project",
    "created",
    "updated",
]

# Project URL paths per project type; anything else opens the browse page
PROJECT_PATHS = {
    "software": "/jira/software/projects/{key}/boards",
    "business": "/jira/core/projects/{key}/board",
    "service_desk": "/jira/servicedesk/projects/{key}/queues",
}


def normalize_base_url(domain: str) -> str:
    """Turn a configured domain into the site base URL.

    Trailing slashes are stripped and ``https://`` is added when the value has
    no scheme, so "team.atlassian.net/" becomes "https://team.atlassian.net".
    """
    site = (domain or "").strip().rstrip("/")
    if not site:
        raise PreconditionError("Jira domain is not configured")
    if site.startswith(("http://", "https://")):
        return site
    return f"https://{site}"


def build_adf_document(text: str) -> dict:
    """Wrap plain text in the single-paragraph ADF document Jira expects."""
    return {
        "type": "doc",
        "version": 1,
        "content": [
            {
                "type": "paragraph",
                "content": [{"type": "text", "text": text}],
            }
        ],
    }


@dataclass(frozen=True)
class IssueTypeListing:
    """Issue types as returned by one of the two lookup endpoints.

    ``kind`` records which envelope the entries came from:
    "statuses" (bare list from /project/{id}/statuses), "issueTypes" or
    "values" (createmeta envelopes).
    """

    kind: str
    entries: list[dict]

    def normalize(self) -> list[IssueType]:
        return [IssueType.from_api(entry) for entry in self.entries]


def parse_issue_type_listing(payload: Any) -> IssueTypeListing:
    """Classify an issue type payload by its envelope.

    Raises:
        MalformedResponseError: If the payload matches no known envelope.
    """
    if isinstance(payload, list):
        return IssueTypeListing(kind="statuses", entries=payload)
    if isinstance(payload, dict):
        for kind in ("issueTypes", "values"):
            if isinstance(payload.get(kind), list):
                return IssueTypeListing(kind=kind, entries=payload[kind])
    raise MalformedResponseError(
        "Unrecognised issue type response from Jira", raw=repr(payload)[:500]
    )


class JiraClient:
    """Async client for the Jira Cloud REST and Agile APIs.

    The client holds no state besides the site and credentials; results are
    fetched fresh on every call.
    """

    SEARCH_LIMIT = 50
    PROJECT_PAGE_SIZE = 100
    USER_PAGE_SIZE = 1000
    AGILE_PAGE_SIZE = 50

    def __init__(
        self,
        domain: str,
        email: str,
        api_token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            domain: Site hostname or base URL, e.g. "team.atlassian.net".
            email: Account email used for basic auth.
            api_token: Atlassian API token.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.base_url = normalize_base_url(domain)
        self._email = email
        self._api_token = api_token
        self._timeout = timeout
        self._transport = transport

    def _get_auth_header(self) -> dict[str, str]:
        """Basic auth header: base64 of "email:api_token"."""
        credentials = f"{self._email}:{self._api_token}"
        encoded = base64.b64encode(credentials.encode()).decode()
        return {"Authorization": f"Basic {encoded}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
        json: Any = None,
        write: bool = False,
    ) -> Any:
        """Send one request and return the decoded JSON body (None when empty).

        Raises:
            JiraAPIError: On a non-2xx response or a transport failure (status 0).
            MalformedResponseError: If a non-empty body is not JSON.
        """
        headers = {**self._get_auth_header(), "Accept": "application/json"}
        if write:
            headers["Content-Type"] = "application/json"

        logger.debug(f"Jira {method} {path} params={params}")
        with PerformanceTimer("jira_request", method=method, path=path) as timer:
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport
                ) as client:
                    response = await client.request(
                        method,
                        f"{self.base_url}{path}",
                        headers=headers,
                        params=params,
                        json=json,
                    )
            except httpx.RequestError as e:
                logger.error(f"Jira {method} {path} failed: {e}")
                raise JiraAPIError(0, str(e)) from e
            timer.add_metric("status", response.status_code)

        if not response.is_success:
            logger.error(f"Jira {method} {path} returned {response.status_code}")
            raise JiraAPIError(response.status_code, response.text)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Jira returned invalid JSON for {path}", raw=response.text
            ) from e

    async def test_connection(self) -> bool:
        """Verify the credentials by fetching the current user."""
        try:
            await self.get_current_user()
            return True
        except QuickJiraError as e:
            logger.warning(f"Jira connection test failed: {e}")
            return False

    # Issues

    async def search_issues(
        self,
        jql: str,
        limit: int = SEARCH_LIMIT,
        fields: list[str] | None = None,
    ) -> list[Issue]:
        """Run a JQL search.

        Results come back in the order the JQL asks for and are silently
        truncated at ``limit``; there is no "has more" signal.
        """
        data = await self._request(
            "GET",
            "/rest/api/3/search/jql",
            params={
                "jql": jql,
                "maxResults": limit,
                "fields": ",".join(fields or ISSUE_FIELDS),
            },
        )
        issues = [Issue.from_api(issue) for issue in (data or {}).get("issues", [])]
        logger.debug(f"Jira search returned {len(issues)} issues")
        return issues

    async def search(
        self,
        query: str,
        assignee_filter: str = CURRENT_USER,
        project_filter: str = ALL_PROJECTS,
        limit: int = SEARCH_LIMIT,
    ) -> list[Issue]:
        """Search by free text and filters, most recently updated first."""
        return await self.search_issues(
            build_jql(query, assignee_filter, project_filter), limit=limit
        )

    async def create_issue(
        self,
        project_key: str,
        issue_type_id: str,
        summary: str,
        description: str | None = None,
        assignee_account_id: str | None = None,
        sprint_id: int | None = None,
    ) -> str:
        """Create an issue and return its key.

        Optional fields are left out of the payload entirely when not given.

        Raises:
            PreconditionError: If the summary is empty.
        """
        if not summary or not summary.strip():
            raise PreconditionError("Summary is required")

        fields: dict[str, Any] = {
            "project": {"key": project_key},
            "issuetype": {"id": issue_type_id},
            "summary": summary,
        }
        if description:
            fields["description"] = build_adf_document(description)
        if assignee_account_id:
            fields["assignee"] = {"accountId": assignee_account_id}
        if sprint_id:
            fields["sprint"] = {"id": sprint_id}

        data = await self._request(
            "POST", "/rest/api/3/issue", json={"fields": fields}, write=True
        )
        key = (data or {}).get("key")
        if not key:
            raise MalformedResponseError("Jira did not return the created issue key", raw=str(data))
        logger.info(f"Created issue {key} in {project_key}")
        return key

    async def set_assignee(self, issue_key: str, account_id: str | None) -> None:
        """Assign an issue, or clear the assignee when ``account_id`` is None."""
        await self._request(
            "PUT",
            f"/rest/api/3/issue/{issue_key}/assignee",
            json={"accountId": account_id},
            write=True,
        )
        logger.info(f"Set assignee of {issue_key} to {account_id or 'unassigned'}")

    # Projects and issue types

    async def list_projects(self) -> list[Project]:
        """List all visible projects ordered by name, following every page."""
        projects: list[Project] = []
        start_at = 0

        while True:
            data = await self._request(
                "GET",
                "/rest/api/3/project/search",
                params={
                    "orderBy": "name",
                    "maxResults": self.PROJECT_PAGE_SIZE,
                    "startAt": start_at,
                },
            ) or {}
            values = data.get("values", [])
            projects.extend(Project.from_api(value) for value in values)

            is_last = data.get("isLast")
            if is_last is None:
                is_last = start_at + len(values) >= data.get("total", 0)
            if is_last or not values:
                break
            start_at += len(values)

        return projects

    async def list_issue_types(self, project_id_or_key: str) -> list[IssueType]:
        """List the issue types valid for a project.

        A numeric identifier is looked up by project id, anything else by
        project key through the create-metadata endpoint.
        """
        if str(project_id_or_key).isdigit():
            path = f"/rest/api/3/project/{project_id_or_key}/statuses"
        else:
            path = f"/rest/api/3/issue/createmeta/{project_id_or_key}/issuetypes"

        listing = parse_issue_type_listing(await self._request("GET", path))
        logger.debug(
            f"Issue types for {project_id_or_key}: {len(listing.entries)} from {listing.kind}"
        )
        return listing.normalize()

    def build_issue_url(self, issue_key: str) -> str:
        return f"{self.base_url}/browse/{issue_key}"

    def build_project_url(self, project_key: str, project_type_key: str | None = None) -> str:
        path = PROJECT_PATHS.get(project_type_key or "", "/browse/{key}")
        return f"{self.base_url}{path.format(key=project_key)}"

    # Users

    async def get_current_user(self) -> User:
        data = await self._request("GET", "/rest/api/3/myself")
        return User.from_api(data or {})

    async def list_assignable_users(self, project_key: str) -> list[User]:
        """List every user assignable in a project.

        Pages of 1000 are requested until one comes back short.
        """
        users: list[User] = []
        start_at = 0

        while True:
            page = await self._request(
                "GET",
                "/rest/api/3/user/assignable/search",
                params={
                    "project": project_key,
                    "startAt": start_at,
                    "maxResults": self.USER_PAGE_SIZE,
                },
            ) or []
            users.extend(User.from_api(user) for user in page)
            if len(page) < self.USER_PAGE_SIZE:
                break
            start_at += self.USER_PAGE_SIZE

        return users

    # Boards and sprints

    async def list_boards_for_project(self, project_key: str) -> list[Board]:
        data = await self._request(
            "GET",
            "/rest/agile/1.0/board",
            params={"projectKeyOrId": project_key, "maxResults": self.AGILE_PAGE_SIZE},
        )
        return [Board.from_api(board) for board in (data or {}).get("values", [])]

    async def list_sprints_for_board(
        self,
        board_id: int,
        states: tuple[str, ...] = ("active", "future"),
    ) -> list[Sprint]:
        data = await self._request(
            "GET",
            f"/rest/agile/1.0/board/{board_id}/sprint",
            params={"state": ",".join(states), "maxResults": self.AGILE_PAGE_SIZE},
        )
        return [Sprint.from_api(sprint) for sprint in (data or {}).get("values", [])]

    async def list_sprints_for_project(self, project_key: str) -> list[Sprint]:
        """Collect active and future sprints across all boards of a project.

        Sprint lookups run concurrently. If any of them fails the result is an
        empty list; a failing board lookup still raises.
        """
        boards = await self.list_boards_for_project(project_key)
        if not boards:
            return []

        try:
            results = await asyncio.gather(
                *(self.list_sprints_for_board(board.id) for board in boards)
            )
        except QuickJiraError as e:
            logger.warning(f"Sprint lookup for {project_key} failed, showing no sprints: {e}")
            return []

        return [sprint for sprints in results for sprint in sprints]
