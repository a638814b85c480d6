"""
Handles the 'seal' command: encrypt a downloaded App private key.
"""

from pathlib import Path

import click

from ..cli_utils import standard_command, add_common_options
from ..config import load_config, configure_logging
from ..exit_codes import CommandError, ConfigurationMissing, DATA_ERROR
from ..vault import KeyVault

DEFAULT_SEALED_PATH = "./keys/github-app.pem.enc"


@click.command(name='seal')
@click.argument('pem_file', type=click.Path(exists=True, dir_okay=False))
@click.option('-o', '--output', default=DEFAULT_SEALED_PATH, show_default=True,
              help='Where to write the encrypted key')
@add_common_options('env_file', 'verbose', 'quiet')
@standard_command()
def seal_handler(pem_file, output, env_file, verbose, quiet, progress, **kwargs):
    """
    Encrypt PEM_FILE with the configured MASTER_PASSWORD_HASH.

    The result can be committed next to the env file; the plaintext PEM
    should be deleted afterwards.
    """
    config = load_config(env_file=env_file)
    configure_logging(config, verbose)

    password_hash = str(config.get('github', {}).get('master_password_hash') or '')
    if not password_hash.strip():
        raise ConfigurationMissing(
            "MASTER_PASSWORD_HASH not set (github.master_password_hash)",
            ["MASTER_PASSWORD_HASH not set (github.master_password_hash)"],
        )

    vault = KeyVault(output)
    try:
        vault.seal(Path(pem_file).read_bytes(), password_hash)
    except ValueError as e:
        raise CommandError(str(e), DATA_ERROR) from e

    # Prove the artifact opens with the same hash before reporting success
    with vault.decrypt(password_hash):
        pass

    progress.success(f"Encrypted key written to {vault.artifact_path}")
    progress.warning(f"Delete the plaintext key once you have verified the setup: {pem_file}")

    return {
        'source': str(pem_file),
        'encrypted_key': str(vault.artifact_path),
        'verified': True,
    }
