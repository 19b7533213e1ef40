"""JQL composition for ticket search."""

# Assignee filter values. Anything else is treated as an account id.
CURRENT_USER = "currentUser"
ALL = "all"
UNASSIGNED = "unassigned"

ALL_PROJECTS = "all"

ORDER_BY = "ORDER BY updated DESC"


def _quote(value: str) -> str:
    """Render a value as a JQL string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_conditions(
    query: str,
    assignee_filter: str = CURRENT_USER,
    project_filter: str = ALL_PROJECTS,
) -> list[str]:
    """Return the JQL conditions in text, assignee, project order."""
    conditions: list[str] = []

    text = query.strip() if query else ""
    if text:
        conditions.append(f"text ~ {_quote(text)}")

    if assignee_filter == CURRENT_USER:
        conditions.append("assignee = currentUser()")
    elif assignee_filter == UNASSIGNED:
        conditions.append("assignee is EMPTY")
    elif assignee_filter and assignee_filter != ALL:
        conditions.append(f"assignee = {_quote(assignee_filter)}")

    if project_filter and project_filter != ALL_PROJECTS:
        conditions.append(f"project = {project_filter}")

    return conditions


def build_jql(
    query: str,
    assignee_filter: str = CURRENT_USER,
    project_filter: str = ALL_PROJECTS,
) -> str:
    """Build the search JQL, always sorted by most recently updated.

    Args:
        query: Free text; blank text adds no condition.
        assignee_filter: currentUser, all, unassigned, or an account id.
        project_filter: all, or a project key.

    Returns:
        The conditions joined with AND followed by the ORDER BY clause.
    """
    clause = " AND ".join(build_conditions(query, assignee_filter, project_filter))
    return f"{clause} {ORDER_BY}" if clause else ORDER_BY


def parse_filter_choice(value: str) -> tuple[str, str]:
    """Split a ``assignee:<v>`` or ``project:<v>`` choice into (kind, value).

    Raises:
        ValueError: If the prefix is not assignee or project, or the value is empty.
    """
    kind, sep, rest = value.partition(":")
    if not sep or kind not in ("assignee", "project") or not rest:
        raise ValueError(f"Invalid filter: {value!r} (expected assignee:<value> or project:<value>)")
    return kind, rest
