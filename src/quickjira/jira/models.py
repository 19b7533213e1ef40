"""Records returned by the Jira client.

All records are immutable and built fresh from API payloads on every call.
Timestamps are kept as the ISO strings Jira returns.
"""

from dataclasses import dataclass


def _avatar(payload: dict) -> str:
    return (payload.get("avatarUrls") or {}).get("48x48", "")


@dataclass(frozen=True)
class User:
    """A Jira user. Only ``account_id`` is a stable identity."""

    account_id: str
    display_name: str
    avatar_url: str = ""

    @classmethod
    def from_api(cls, payload: dict) -> "User":
        return cls(
            account_id=payload.get("accountId", ""),
            display_name=payload.get("displayName", ""),
            avatar_url=_avatar(payload),
        )


@dataclass(frozen=True)
class IssueTypeRef:
    """Issue type as embedded in an issue."""

    name: str
    icon_url: str = ""


@dataclass(frozen=True)
class PriorityRef:
    name: str
    icon_url: str = ""


@dataclass(frozen=True)
class ProjectRef:
    key: str
    name: str


@dataclass(frozen=True)
class Issue:
    """A Jira issue with the fields requested by search."""

    key: str  # e.g. "PROJ-123"
    summary: str
    status: str
    assignee: User | None
    issue_type: IssueTypeRef
    priority: PriorityRef | None
    project: ProjectRef
    created: str
    updated: str

    @classmethod
    def from_api(cls, payload: dict) -> "Issue":
        fields = payload.get("fields") or {}
        assignee = fields.get("assignee")
        priority = fields.get("priority")
        issue_type = fields.get("issuetype") or {}
        project = fields.get("project") or {}
        return cls(
            key=payload.get("key", ""),
            summary=fields.get("summary", ""),
            status=(fields.get("status") or {}).get("name", ""),
            assignee=User.from_api(assignee) if assignee else None,
            issue_type=IssueTypeRef(
                name=issue_type.get("name", ""),
                icon_url=issue_type.get("iconUrl", ""),
            ),
            priority=(
                PriorityRef(name=priority.get("name", ""), icon_url=priority.get("iconUrl", ""))
                if priority
                else None
            ),
            project=ProjectRef(key=project.get("key", ""), name=project.get("name", "")),
            created=fields.get("created", ""),
            updated=fields.get("updated", ""),
        )


@dataclass(frozen=True)
class Project:
    id: str
    key: str  # short unique code, e.g. "ENG"
    name: str
    project_type_key: str | None = None  # "software", "business", "service_desk"

    @classmethod
    def from_api(cls, payload: dict) -> "Project":
        return cls(
            id=str(payload.get("id", "")),
            key=payload.get("key", ""),
            name=payload.get("name", ""),
            project_type_key=payload.get("projectTypeKey"),
        )


@dataclass(frozen=True)
class IssueType:
    id: str
    name: str
    description: str = ""

    @classmethod
    def from_api(cls, payload: dict) -> "IssueType":
        return cls(
            id=str(payload.get("id", "")),
            name=payload.get("name", ""),
            description=payload.get("description") or "",
        )


@dataclass(frozen=True)
class Board:
    id: int
    name: str

    @classmethod
    def from_api(cls, payload: dict) -> "Board":
        return cls(id=payload["id"], name=payload.get("name", ""))


@dataclass(frozen=True)
class Sprint:
    """A sprint; ``state`` is one of active, future or closed."""

    id: int
    name: str
    state: str

    @classmethod
    def from_api(cls, payload: dict) -> "Sprint":
        return cls(
            id=payload["id"],
            name=payload.get("name", ""),
            state=payload.get("state", ""),
        )
