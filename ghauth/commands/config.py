import click
import json

from ..config import load_config, get_config_path, mask_secrets
from ..exit_codes import ConfigurationMissing


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.option("--env-file", type=click.Path(dir_okay=False), help="Env file to merge in (default: github-app.env)")
def show_config(pretty, path, env_file):
    """Show the current configuration with all merges applied.

    Secrets such as the master password hash are masked.
    """
    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    try:
        config = mask_secrets(load_config(env_file=env_file))
    except ConfigurationMissing as e:
        raise click.ClickException(str(e))

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))
