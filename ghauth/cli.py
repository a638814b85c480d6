#!/usr/bin/env python3

import click

from ghauth import __version__
from ghauth.commands.auth import auth_handler
from ghauth.commands.sync import sync_handler
from ghauth.commands.seal import seal_handler
from ghauth.commands.config import config_cmd


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.version_option(__version__, prog_name='ghauth')
def cli():
    """ghauth - GitHub App tokens and declarative repository sync.

    Issues short-lived installation access tokens from an encrypted App
    key, then clones or updates the repositories listed in repos.txt.

    \b
    Typical use:
        ghauth seal downloaded-key.pem      # once
        ghauth auth                         # issue a token
        ghauth sync repos.txt /opt/repos    # clone / update
    """
    pass


cli.add_command(auth_handler, name='auth')
cli.add_command(sync_handler, name='sync')
cli.add_command(seal_handler, name='seal')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
