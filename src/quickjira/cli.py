"""Command-line interface for quickjira.

Provides the launcher commands: search tickets, create a ticket (optionally
drafted by AI) and open a project, plus credential management.
"""

import asyncio
import sys
from collections.abc import Sequence

import click

from . import __version__
from .config import SETTINGS_FILE, create_default_config, load_config, save_config
from .credentials import delete_credentials, store_credentials
from .database import get_recent_store
from .errors import PreconditionError, QuickJiraError
from .generator import create_generator
from .jira import JiraClient, create_client
from .jira.models import Issue
from .jira.query import ALL_PROJECTS, CURRENT_USER, parse_filter_choice
from .logging import configure_logging, get_logger
from .recent import RecentSelections, rank_by_recent, rank_by_recent_list

logger = get_logger("cli")

NO_CHOICE = "none"

STATUS_COLORS = {
    "done": "green",
    "closed": "green",
    "resolved": "green",
    "in progress": "blue",
    "in review": "blue",
    "to do": "yellow",
    "open": "yellow",
    "backlog": "yellow",
}


def status_color(status: str) -> str | None:
    """Terminal colour for a status name, None for the default colour."""
    return STATUS_COLORS.get(status.lower())


def _show_welcome_message() -> None:
    """Show welcome message for first-time users."""
    click.echo()
    click.secho("Welcome to quickjira!", fg="green", bold=True)
    click.echo()
    click.echo("Get started:")
    click.echo("  1. Connect your Jira site:")
    click.echo("     quickjira login")
    click.echo()
    click.echo("  2. Find your tickets:")
    click.echo("     quickjira search")
    click.echo()
    click.echo(f"Settings live in {SETTINGS_FILE}")
    click.echo()


def _run(coro) -> None:
    """Run a command coroutine, reporting quickjira errors without a traceback."""
    try:
        asyncio.run(coro)
    except QuickJiraError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _choose(label: str, options: Sequence[tuple[str, str]], default: str | None = None) -> str:
    """Prompt for one of ``options`` (value, title) by number and return its value."""
    if not options:
        raise click.ClickException(f"No {label.lower()} options available")

    click.echo(f"\n{label}:")
    for index, (_, title) in enumerate(options, 1):
        click.echo(f"  {index:>3}. {title}")

    values = [value for value, _ in options]
    default_index = values.index(default) + 1 if default in values else 1
    choice = click.prompt(
        f"Choose {label.lower()}",
        type=click.IntRange(1, len(options)),
        default=default_index,
    )
    return values[choice - 1]


def _echo_issue(issue: Issue, url: str) -> None:
    assignee = issue.assignee.display_name if issue.assignee else "Unassigned"
    click.echo(
        f"{click.style(issue.key, bold=True):<20} "
        f"{click.style(f'[{issue.status}]', fg=status_color(issue.status))} "
        f"{issue.project.key:<8} {assignee:<20} {issue.summary}"
    )
    click.echo(f"    {url}")


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def main(ctx: click.Context, version: bool, verbose: bool) -> None:
    """quickjira - Jira tickets from your terminal.

    Examples:

        quickjira search "login bug"        Search tickets assigned to you

        quickjira create --draft "..."      Draft a ticket with AI and create it

        quickjira open ENG                  Open a project in the browser
    """
    configure_logging(verbose)

    is_first_run = create_default_config()
    if is_first_run:
        _show_welcome_message()

    if version:
        click.echo(f"quickjira version {__version__}")
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command("login")
def login() -> None:
    """Store Jira (and optionally OpenAI) credentials."""
    _run(cmd_login())


@main.command("logout")
def logout() -> None:
    """Remove stored credentials."""
    delete_credentials("jira")
    delete_credentials("ai")
    click.echo("✓ Removed stored credentials")


@main.command("search")
@click.argument("query", default="")
@click.option("--assignee", "-a", default=CURRENT_USER, show_default=True,
              help="currentUser, all, unassigned or an account id")
@click.option("--project", "-p", default=ALL_PROJECTS, show_default=True,
              help="all or a project key")
@click.option("--filter", "-f", "filters", multiple=True, metavar="KIND:VALUE",
              help="assignee:<value> or project:<value>, may be repeated")
@click.option("--limit", "-n", default=JiraClient.SEARCH_LIMIT, show_default=True)
def search(query: str, assignee: str, project: str, filters: tuple[str, ...], limit: int) -> None:
    """Search tickets, most recently updated first."""
    for choice in filters:
        try:
            kind, value = parse_filter_choice(choice)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--filter") from e
        if kind == "assignee":
            assignee = value
        else:
            project = value
    _run(cmd_search(query, assignee, project, limit))


@main.command("assign")
@click.argument("issue_key")
@click.argument("account_id", required=False)
@click.option("--me", is_flag=True, help="Assign to yourself")
@click.option("--unassign", is_flag=True, help="Clear the assignee")
def assign(issue_key: str, account_id: str | None, me: bool, unassign: bool) -> None:
    """Change the assignee of a ticket."""
    if sum([bool(account_id), me, unassign]) != 1:
        raise click.UsageError("Give exactly one of ACCOUNT_ID, --me or --unassign")
    _run(cmd_assign(issue_key.upper(), account_id, me))


@main.command("create")
@click.option("--project", "-p", help="Project key")
@click.option("--type", "-t", "issue_type", help="Issue type id or name")
@click.option("--summary", "-s", help="Ticket summary")
@click.option("--description", "-d", help="Ticket description")
@click.option("--assignee", "-a", help=f"Account id, or '{NO_CHOICE}' to leave unassigned")
@click.option("--sprint", help=f"Sprint id, or '{NO_CHOICE}' for the backlog")
@click.option("--draft", help="Rough text for the AI to turn into summary and description")
@click.option("--yes", "-y", is_flag=True, help="Create without confirmation")
def create(
    project: str | None,
    issue_type: str | None,
    summary: str | None,
    description: str | None,
    assignee: str | None,
    sprint: str | None,
    draft: str | None,
    yes: bool,
) -> None:
    """Create a ticket, prompting for anything not given."""
    _run(cmd_create(project, issue_type, summary, description, assignee, sprint, draft, yes))


@main.command("projects")
def projects() -> None:
    """List projects, most recently opened first."""
    _run(cmd_projects())


@main.command("open")
@click.argument("project_key")
@click.option("--no-browser", is_flag=True, help="Only print the URL")
def open_project(project_key: str, no_browser: bool) -> None:
    """Open a project in the browser."""
    _run(cmd_open_project(project_key.upper(), no_browser))


async def cmd_login() -> None:
    """Prompt for credentials, store them and test the connection."""
    config = load_config()

    domain = click.prompt(
        "Jira site (e.g., your-team.atlassian.net)", default=config.jira.domain or None
    )
    email = click.prompt("Jira account email", default=config.jira.email or None)
    api_token = click.prompt("Jira API token", hide_input=True)
    ai_key = click.prompt(
        "OpenAI API key (optional, for --draft)", default="", hide_input=True, show_default=False
    )

    client = JiraClient(domain, email, api_token, timeout=config.jira.timeout)
    click.echo("Testing connection...")
    if not await client.test_connection():
        click.echo("✗ Connection test failed. Credentials may be invalid.", err=True)
        sys.exit(1)

    config.jira.domain = domain
    config.jira.email = email
    save_config(config)
    store_credentials("jira", {"api_token": api_token})
    if ai_key:
        store_credentials("ai", {"api_key": ai_key})
    click.echo(f"✓ Connected to {client.base_url}")


async def cmd_search(query: str, assignee: str, project: str, limit: int) -> None:
    """Search tickets and print them."""
    client = create_client()
    issues = await client.search(query, assignee, project, limit=limit)

    if not issues:
        click.echo("No matching tickets found.", err=True)
        sys.exit(1)

    for issue in issues:
        _echo_issue(issue, client.build_issue_url(issue.key))


async def cmd_assign(issue_key: str, account_id: str | None, me: bool) -> None:
    """Assign a ticket, to yourself, someone else, or nobody."""
    client = create_client()
    if me:
        account_id = (await client.get_current_user()).account_id

    await client.set_assignee(issue_key, account_id)
    click.echo(f"✓ {issue_key} {'assigned to ' + account_id if account_id else 'unassigned'}")


async def cmd_projects() -> None:
    """List projects with recently opened ones first."""
    config = load_config()
    client = create_client(config)
    store = await get_recent_store()
    try:
        state = await RecentSelections(store, config.recent.max_open_projects).load()
        projects = await client.list_projects()
    finally:
        await store.close()

    recent = set(state.open_project_keys)
    for project in rank_by_recent_list(projects, lambda p: p.key, state.open_project_keys):
        marker = "*" if project.key in recent else " "
        click.echo(f"{marker} {project.key:<10} {project.name}")


async def cmd_open_project(project_key: str, no_browser: bool) -> None:
    """Record a project as recently opened and launch its URL."""
    config = load_config()
    client = create_client(config)
    projects = await client.list_projects()
    project = next((p for p in projects if p.key == project_key), None)
    if project is None:
        raise PreconditionError(f"Unknown project: {project_key}")

    url = client.build_project_url(project.key, project.project_type_key)
    store = await get_recent_store()
    try:
        await RecentSelections(store, config.recent.max_open_projects).record_project_open(project.key)
    finally:
        await store.close()

    click.echo(url)
    if not no_browser:
        click.launch(url)


def _resolve_issue_type(issue_types, wanted: str) -> str:
    for issue_type in issue_types:
        if wanted in (issue_type.id, issue_type.name) or wanted.lower() == issue_type.name.lower():
            return issue_type.id
    raise PreconditionError(f"Unknown issue type: {wanted}")


async def cmd_create(
    project_key: str | None,
    issue_type: str | None,
    summary: str | None,
    description: str | None,
    assignee: str | None,
    sprint: str | None,
    draft: str | None,
    yes: bool,
) -> None:
    """Collect ticket fields, create the ticket and remember the choices."""
    config = load_config()
    client = create_client(config)
    store = await get_recent_store()
    try:
        recent = RecentSelections(store, config.recent.max_open_projects)
        state = await recent.load()

        if draft:
            click.echo("Generating ticket...")
            ticket = await create_generator(config).generate(draft)
            summary = summary or ticket.summary
            description = description or ticket.description
            click.echo(f"\nSummary: {summary}\n\n{description}\n")

        if not project_key:
            projects = rank_by_recent(await client.list_projects(), lambda p: p.key, state.project_key)
            project_key = _choose(
                "Project",
                [(p.key, f"{p.key} - {p.name}") for p in projects],
                default=state.project_key,
            )

        issue_types = await client.list_issue_types(project_key)
        if issue_type:
            issue_type_id = _resolve_issue_type(issue_types, issue_type)
        else:
            ranked = rank_by_recent(issue_types, lambda t: t.id, state.issue_type_id)
            issue_type_id = _choose(
                "Issue type", [(t.id, t.name) for t in ranked], default=state.issue_type_id
            )

        if assignee is None:
            users, me = await asyncio.gather(
                client.list_assignable_users(project_key), client.get_current_user()
            )
            default_assignee = state.assignee_id or me.account_id
            ranked_users = rank_by_recent(users, lambda u: u.account_id, state.assignee_id)
            assignee = _choose(
                "Assignee",
                [(NO_CHOICE, "Unassigned")] + [(u.account_id, u.display_name) for u in ranked_users],
                default=default_assignee,
            )
        assignee_id = None if assignee == NO_CHOICE else assignee

        if sprint is None:
            sprints = await client.list_sprints_for_project(project_key)
            sprint = NO_CHOICE
            if sprints:
                active = next((str(s.id) for s in sprints if s.state == "active"), NO_CHOICE)
                sprint = _choose(
                    "Sprint",
                    [(NO_CHOICE, "Backlog")] + [(str(s.id), f"{s.name} ({s.state})") for s in sprints],
                    default=active,
                )
        if sprint != NO_CHOICE and not sprint.isdigit():
            raise PreconditionError(f"Sprint must be a numeric id or '{NO_CHOICE}'")
        sprint_id = None if sprint == NO_CHOICE else int(sprint)

        if not summary:
            summary = click.prompt("Summary").strip()
        if not summary:
            raise PreconditionError("Summary is required")
        if description is None and not yes:
            description = click.prompt("Description", default="", show_default=False)

        if not yes and not click.confirm(f"Create ticket in {project_key}?", default=True):
            click.echo("Cancelled.")
            return

        key = await client.create_issue(
            project_key,
            issue_type_id,
            summary,
            description=description or None,
            assignee_account_id=assignee_id,
            sprint_id=sprint_id,
        )
        await recent.remember_creation(project_key, issue_type_id, assignee_id)
    finally:
        await store.close()

    click.echo(f"✓ Created {key}")
    click.echo(client.build_issue_url(key))


if __name__ == "__main__":
    main()
