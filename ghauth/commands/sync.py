"""
Handles the 'sync' command: reconcile the repository list onto disk.

Default output is JSONL streaming (one line per declared repository
and a final summary line); --table renders a rich table instead.
"""

import os
from pathlib import Path

import click

from ..cli_utils import standard_command, add_common_options
from ..config import load_config, configure_logging
from ..exit_codes import AUTH_ERROR, CommandError, GENERAL_ERROR, PartialSuccessError
from ..infra.secret_store import TokenHandoff
from ..render import render_sync_table
from ..repo_spec import iter_spec_entries, read_repo_file
from ..services.reconcile_service import ReconciliationEngine

TOKEN_ENV = 'GITHUB_ACCESS_TOKEN'


def resolve_access_token(config) -> str:
    """
    Find the token issued by 'ghauth auth'.

    GITHUB_ACCESS_TOKEN wins; otherwise the handoff file is consumed.

    Raises:
        CommandError: if neither source has a token
    """
    token = os.environ.get(TOKEN_ENV, '').strip()
    if token:
        return token

    token = TokenHandoff(config.get('credentials', {}).get('handoff_path')).consume()
    if token:
        return token

    raise CommandError(
        "No GitHub access token found. Run 'ghauth auth' first to authenticate",
        AUTH_ERROR,
    )


@click.command(name='sync')
@click.argument('repos_file', required=False)
@click.argument('default_destination', required=False)
@click.option('--table', is_flag=True, help='Display results as a formatted table')
@add_common_options('env_file', 'verbose', 'quiet')
@standard_command(streaming=True)
def sync_handler(repos_file, default_destination, table, env_file, verbose, quiet, progress, **kwargs):
    """
    Clone or update every repository listed in REPOS_FILE.

    \b
    REPOS_FILE format (default: repos.txt):
        # comment
        owner/name                       -> DEFAULT_DESTINATION/name
        owner/name  /opt/code/name       -> explicit destination
        owner/name  "/opt/my code/name"  -> quoted destination

    Existing clones are updated (local changes are stashed and restored);
    directories holding something else are left untouched and reported.
    Exits 0 only if every repository was cloned or updated.

    \b
    Examples:
        ghauth sync
        ghauth sync repos.txt /opt/repositories --table
    """
    config = load_config(env_file=env_file)
    configure_logging(config, verbose)
    sync_settings = config.get('sync', {})

    repos_path = Path(repos_file or sync_settings.get('repos_file') or 'repos.txt').expanduser()
    destination = default_destination or sync_settings.get('default_destination') or './repositories'

    if not repos_path.is_file():
        raise CommandError(
            f"Repository file '{repos_path}' not found. Create it with lines like "
            f"'owner/name' or 'owner/name /path/to/destination'",
            GENERAL_ERROR,
        )

    lines = read_repo_file(repos_path)
    token = resolve_access_token(config)

    Path(destination).expanduser().mkdir(parents=True, exist_ok=True)
    progress(f"Repository file: {repos_path}")
    progress(f"Default destination: {destination}")

    engine = ReconciliationEngine()
    results = []
    for result in engine.sync(iter_spec_entries(lines, destination), token):
        label = result.get('repo') or f"line {result.get('line')}"
        if result['status'] in ('cloned', 'updated'):
            progress.success(f"{label}: {result.get('message', result['status'])}")
        else:
            progress.warning(f"{label}: {result.get('error')}")

        if table:
            results.append(result)
        else:
            yield result

    summary = engine.last_result
    if table:
        render_sync_table(results, summary.to_dict())
    else:
        yield summary.to_dict()

    if not summary.success:
        raise PartialSuccessError(
            f"{summary.successful} of {summary.total} repositories synchronized; "
            f"{summary.conflicts} conflicts, {summary.failed} failed, {summary.invalid} invalid",
            succeeded=summary.successful,
            failed=summary.conflicts + summary.failed + summary.invalid,
        )
