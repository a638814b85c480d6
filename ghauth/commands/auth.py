"""
Handles the 'auth' command: issue an installation access token.

Decrypts the App key, discovers the installation, exchanges a fresh
assertion for a token, then makes the token available to git (through
the credential store) and to ``ghauth sync`` (through the handoff file).
"""

import click

from ..cli_utils import standard_command, add_common_options
from ..config import load_config, load_app_credentials, configure_logging
from ..infra.secret_store import GitCredentialStore, TokenHandoff
from ..services.issuance_service import TokenIssuer


@click.command(name='auth')
@click.option('--print-token', is_flag=True,
              help='Print only the raw token on stdout (for export GITHUB_ACCESS_TOKEN=...)')
@add_common_options('env_file', 'verbose', 'quiet')
@standard_command()
def auth_handler(print_token, env_file, verbose, quiet, progress, **kwargs):
    """
    Authenticate as the GitHub App and issue an access token.

    The token is written to the git credential store for github.com and
    to a read-once handoff file consumed by 'ghauth sync'.

    \b
    Examples:
        ghauth auth
        ghauth auth --env-file /etc/ghauth/github-app.env
        export GITHUB_ACCESS_TOKEN=$(ghauth auth --print-token -q)
    """
    config = load_config(env_file=env_file)
    configure_logging(config, verbose)

    credentials = load_app_credentials(config)
    progress(f"Authenticating as GitHub App {credentials.app_id}...")

    result = TokenIssuer(credentials).issue()
    token = result.token

    settings = config.get('credentials', {})
    store = GitCredentialStore(
        path=settings.get('git_credentials_path'),
        configure_helper=bool(settings.get('configure_git_helper', True)),
    )
    credentials_file = store.store(token.value)
    handoff_file = TokenHandoff(settings.get('handoff_path')).publish(token.value)

    progress.success("GitHub App authentication successful")
    if token.expires_at:
        progress(f"Token expires at {token.expires_at}")

    # --quiet silences progress only; the token is the requested output
    if print_token:
        click.echo(token.value)
        return None

    output = result.to_dict()
    output['credentials_file'] = str(credentials_file)
    output['handoff_file'] = str(handoff_file)
    return output
