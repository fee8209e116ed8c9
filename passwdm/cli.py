"""
Command-line interface for passwdm

Provides the setup wizard, the master-key rotation command and the
interactive credential menu.
"""
import logging
from pathlib import Path
from typing import Any, Optional

import click
from pydantic import ValidationError

from . import conf
from .version import __version__
from .exceptions import (
    CryptoError,
    EntryNotFound,
    EntryStateError,
    FatalConfigError,
    StoreError,
    Unauthorized,
)
from .vault.config import (
    MasterConfig,
    commit_config,
    generate_master_key,
    load_config,
    pending_config_path,
    write_config,
)
from .vault.crypto import CIPHERS, DEFAULT_CIPHER
from .vault.key_rotation import rotate_master_key
from .vault.lifecycle import CredentialManager
from .vault.store import EntryStore

logger = logging.getLogger("passwdm.cli")


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _error(message: str) -> None:
    click.secho(f"✖  {message}", fg="red", err=True)


def _warn(message: str) -> None:
    click.secho(message, fg="yellow")


def _fatal(message: str) -> None:
    """Print ``message`` and terminate with exit code 1."""
    _error(message)
    click.get_current_context().exit(1)


def _pause() -> None:
    click.pause("Press ENTER to continue")


def _timestamp(value) -> str:
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _show_secret(title: str, password: str, fg: str) -> None:
    click.secho(f"\n{title}\n", fg=fg)
    click.secho(f"    {password}\n", bold=True)


def select(message: str, choices: list[tuple[str, Any]]) -> Any:
    """Print a numbered list and return the value of the chosen item."""
    click.echo()
    for number, (label, _) in enumerate(choices, 1):
        click.echo(f"  {number}) {label}")
    index = click.prompt(
        message, type=click.IntRange(1, len(choices)), show_choices=False
    )
    return choices[index - 1][1]


# ---------------------------------------------------------------------------
# Setup and authentication
# ---------------------------------------------------------------------------

def _prompt_new_password() -> str:
    while True:
        password = click.prompt(
            "Set application access password",
            hide_input=True,
            confirmation_prompt="Confirm password",
        )
        if password.strip():
            return password
        _error("Password cannot be empty")


def run_init(home: Path) -> MasterConfig:
    """Create the config file with a new password and a fresh master key."""
    click.secho("\n🔧 Initializing passwdm configuration…\n", fg="blue")
    path = conf.config_path(home)
    if path.exists():
        _warn(f"A configuration already exists at {path}.")
        _warn("Replacing its key makes every stored secret unreadable.")
        if not click.confirm("Overwrite it?", default=False):
            click.get_current_context().exit(0)

    password = _prompt_new_password()
    config = write_config(path, password, generate_master_key())

    click.secho("\n✅  Configuration saved to: ", fg="green", nl=False)
    click.echo(str(path))
    _warn("\n💾  Please save this ENCRYPTION_KEY somewhere safe:")
    click.echo(f"{config.encryption_key}\n")
    return config


def unlock(home: Path):
    """Authenticate the user and decode the master key.

    Terminates with exit code 1 on a wrong password or a broken config.
    """
    path = conf.config_path(home)
    try:
        config = load_config(path)
        config.authenticate(
            click.prompt("Enter application access password", hide_input=True)
        )
        return config, config.unlock_key()
    except Unauthorized:
        _fatal("Invalid application password. Exiting.")
    except FatalConfigError as err:
        logger.debug("Config rejected: %s", err)
        _fatal(f"{err}. Please run `passwdm init` again.")


# ---------------------------------------------------------------------------
# Interactive session
# ---------------------------------------------------------------------------

MAIN_MENU = [
    ("Generate", "gen"),
    ("Get", "get"),
    ("Delete site", "delete"),
    ("Exit", "exit"),
]


class Session:
    """Interactive menu over a CredentialManager.

    Each flow returns ``"exit"`` when the user asked to leave the program.
    """

    def __init__(self, manager: CredentialManager):
        self.manager = manager
        self.flows = {
            "gen": self.generate_flow,
            "get": self.get_flow,
            "delete": self.delete_flow,
        }

    def run(self) -> int:
        while True:
            click.clear()
            click.secho("\n🔐  CLI Password Manager\n", fg="blue", bold=True)
            action = select("Choose", MAIN_MENU)
            if action == "exit":
                return 0
            if self.flows[action]() == "exit":
                return 0

    def generate_flow(self) -> Optional[str]:
        while True:
            name = click.prompt("App/site name").strip()
            if name:
                break
            _error("Name cannot be empty")
        _, password = self.manager.generate(name)
        _show_secret(f'✅  New password for "{name}":', password, "green")
        _pause()
        return None

    def get_flow(self) -> Optional[str]:
        active = self.manager.list_active()
        if not active:
            _warn("No active passwords.")
            _pause()
            return None
        entry_id = select("Select entry", [
            (f"{e.name} (added {_timestamp(e.created_at)})", e.id)
            for e in active
        ])
        try:
            entry = self.manager.find(entry_id)
            password = self.manager.retrieve(entry_id)
        except EntryNotFound:
            _warn("Entry disappeared from the store.")
            _pause()
            return None
        except CryptoError as err:
            logger.debug("Decryption of entry id=%s failed: %s", entry_id, err)
            _error("Decryption failed.")
            return self.corrupted_flow(entry_id)

        _show_secret(f'🔑  Password for "{entry.name}":', password, "cyan")
        action = select("Next?", [
            ("Deprecate + new", "regen"),
            ("Show deprecated", "old"),
            ("Back", "back"),
            ("Exit", "exit"),
        ])
        if action == "regen":
            try:
                _, password = self.manager.rotate(entry_id)
            except (EntryNotFound, EntryStateError) as err:
                logger.debug("Rotation of entry id=%s refused: %s", entry_id, err)
                _warn("Entry changed in the store; nothing was rotated.")
            else:
                _show_secret("🔄  New password:", password, "green")
            _pause()
        elif action == "old":
            self.deprecated_flow()
        elif action == "exit":
            return "exit"
        return None

    def corrupted_flow(self, entry_id: str) -> Optional[str]:
        action = select("Handle corrupted entry?", [
            ("Back", "back"),
            ("Delete & new", "regen"),
        ])
        if action == "regen":
            _, password = self.manager.replace_corrupted(entry_id)
            _show_secret("🔄  Replaced with new password:", password, "green")
            _pause()
        return None

    def deprecated_flow(self) -> None:
        old = self.manager.list_deprecated()
        if not old:
            _warn("No deprecated passwords.")
            _pause()
            return
        entry_id = select("Select deprecated", [
            (
                f"{e.name} (created {_timestamp(e.created_at)}, "
                f"deprecated {_timestamp(e.deprecated_at)})",
                e.id,
            )
            for e in old
        ])
        try:
            entry = self.manager.find(entry_id)
            password = self.manager.retrieve(entry_id)
        except (EntryNotFound, CryptoError) as err:
            logger.debug("Cannot show deprecated entry id=%s: %s", entry_id, err)
            _error("Decryption failed.")
        else:
            _show_secret(f'❗  Deprecated for "{entry.name}":', password, "bright_black")
        _pause()

    def delete_flow(self) -> Optional[str]:
        names = self.manager.names()
        if not names:
            _warn("Nothing to delete.")
            _pause()
            return None
        name = select("Select site to delete", [(n, n) for n in names])
        if not click.confirm(f'Delete ALL for "{name}"?', default=False):
            return None
        removed = self.manager.delete(name)
        click.secho(f'Deleted {removed} entries for "{name}".', fg="green")
        _pause()
        return None


def run_session(home: Path) -> int:
    """Authenticate, then run the menu loop until the user exits."""
    try:
        settings = conf.Settings.from_env()
    except ValidationError as err:
        logger.debug("Settings rejected: %s", err)
        _fatal(
            "Invalid PASSWDM_PASSWORD_LENGTH: expected an integer between 8 and 4096."
        )
    if not conf.config_path(home).exists():
        _warn("⚙️  No configuration found. Running setup.")
        run_init(home)
    _, master_key = unlock(home)
    manager = CredentialManager(
        EntryStore(conf.store_path(home)),
        master_key,
        password_length=settings.password_length,
    )
    try:
        return Session(manager).run()
    except StoreError as err:
        _fatal(str(err))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@click.group(invoke_without_command=True)
@click.option(
    "--home",
    envvar="PASSWDM_HOME",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding config.json and store.json (default: ~/.passwdm)",
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="passwdm")
@click.pass_context
def cli(ctx: click.Context, home: Optional[Path], debug: bool):
    """passwdm - local password vault.

    Run without a command to open the interactive menu.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = conf.get_home(home)
    if ctx.invoked_subcommand is None:
        ctx.exit(run_session(ctx.obj))


@cli.command()
@click.pass_obj
def init(home: Path):
    """Set the access password and generate a new encryption key."""
    run_init(home)


@cli.command()
@click.option(
    "--cipher",
    type=click.Choice(sorted(CIPHERS)),
    default=None,
    help=f"AEAD backend for the new key (default: keep current, else {DEFAULT_CIPHER})",
)
@click.pass_obj
def rekey(home: Path, cipher: Optional[str]):
    """Re-encrypt every entry under a freshly generated key.

    The new config is written to a pending side file and its key printed
    before the store is touched; the side file replaces config.json only
    after the store was saved under the new key.
    """
    config, old_key = unlock(home)
    if not click.confirm("Re-encrypt all entries with a new key?", default=False):
        return

    path = conf.config_path(home)
    pending = pending_config_path(path)
    try:
        new_config = write_config(
            pending,
            config.app_password,
            generate_master_key(),
            cipher or config.cipher,
        )
    except OSError as err:
        _fatal(f"Cannot write {pending}: {err}. Nothing was changed.")

    _warn("\n💾  Please save the new ENCRYPTION_KEY somewhere safe:")
    click.echo(f"{new_config.encryption_key}\n")

    try:
        stats = rotate_master_key(
            EntryStore(conf.store_path(home)), old_key, new_config.unlock_key()
        )
    except StoreError as err:
        pending.unlink(missing_ok=True)
        _fatal(f"{err}. The store and config were left unchanged.")

    try:
        commit_config(pending, path)
    except OSError as err:
        _fatal(
            f"Entries are now sealed with the key printed above, but {path} "
            f"could not be updated ({err}). Move {pending} to {path} to "
            "finish the rotation."
        )

    click.secho(
        f"🔄  Re-encrypted {stats['rotated']} of {stats['total']} entries.",
        fg="green",
    )
    if stats["errors"]:
        _warn(f"{stats['errors']} corrupted entries could not be re-encrypted.")


def main():
    cli(prog_name="passwdm")


if __name__ == "__main__":
    main()
