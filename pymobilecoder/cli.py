"""CLI interface for MobileCoder sync."""

import logging
import time
from pathlib import Path
from typing import Any, Optional

import click
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from .api import MobileCoderClient
from .auth import DEFAULT_DEVICE_NAME, AuthService, CredentialStore
from .config import SyncSettings, config
from .exceptions import MobileCoderError
from .output import OutputFormatter
from .remote_files import RemoteFileCache
from .sync import FileWatcher, SyncEngine, SyncResults
from .utils import get_icon_from_filename, parse_iso_timestamp, pluralize

logger = logging.getLogger(__name__)


def format_date(timestamp: Optional[str]) -> str:
    """Format an API timestamp as e.g. "Jan 15, 2025" in local time."""
    dt = parse_iso_timestamp(timestamp)
    if dt is None:
        return "Invalid date"
    return dt.astimezone().strftime("%b %d, %Y")


def _get_auth(ctx: Any) -> AuthService:
    if "auth" not in ctx.obj:
        client = MobileCoderClient()
        store = CredentialStore(config.get_credentials_path())
        ctx.obj["client"] = client
        ctx.obj["auth"] = AuthService(client, store)
    return ctx.obj["auth"]


def _get_engine(ctx: Any) -> SyncEngine:
    if "engine" not in ctx.obj:
        auth = _get_auth(ctx)
        settings = SyncSettings.from_config(config)
        if ctx.obj.get("sync_dir"):
            settings.sync_directory = ctx.obj["sync_dir"]
        logger.debug(f"Sync root: {settings.resolve_root()}")
        ctx.obj["engine"] = SyncEngine(auth, ctx.obj["client"], settings)
    return ctx.obj["engine"]


def _require_sign_in(ctx: Any, action: str) -> None:
    out: OutputFormatter = ctx.obj["out"]
    if not _get_auth(ctx).is_authenticated():
        out.warning(f"Please sign in first to {action}.")
        out.info("Run 'pymobilecoder login' to sign in")
        ctx.exit(1)


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--sync-dir",
    "-d",
    type=click.Path(file_okay=False),
    help="Directory to sync (overrides the configured sync directory)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="pymobilecoder")
@click.pass_context
def main(
    ctx: Any, quiet: bool, json: bool, sync_dir: Optional[str], verbose: bool
) -> None:
    """PyMobileCoder - Keep a local folder in sync with MobileCoder."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["sync_dir"] = sync_dir

    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pymobilecoder").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option("--email", "-e", prompt="Enter your email address", help="Email")
@click.option("--password", "-p", prompt=True, hide_input=True, help="Password")
@click.option(
    "--device-name",
    default=DEFAULT_DEVICE_NAME,
    show_default=True,
    help="Name for this device",
)
@click.pass_context
def login(ctx: Any, email: str, password: str, device_name: str) -> None:
    """Sign in to MobileCoder and store the access token."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        user = _get_auth(ctx).sign_in(email, password, device_name)
    except MobileCoderError as e:
        out.error(f"Login failed: {e}")
        ctx.exit(1)

    out.success(f"Successfully signed in to MobileCoder as {user.email}!")


@main.command()
@click.option("--email", "-e", prompt="Enter your email address", help="Email")
@click.option(
    "--password",
    "-p",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Password (at least 6 characters)",
)
@click.option(
    "--device-name",
    default=DEFAULT_DEVICE_NAME,
    show_default=True,
    help="Name for this device",
)
@click.pass_context
def register(ctx: Any, email: str, password: str, device_name: str) -> None:
    """Create a MobileCoder account and sign in."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        user = _get_auth(ctx).register(email, password, device_name)
    except (ValueError, MobileCoderError) as e:
        out.error(f"Registration failed: {e}")
        ctx.exit(1)

    out.success(f"Registration successful! Signed in as {user.email}")


@main.command()
@click.pass_context
def logout(ctx: Any) -> None:
    """Sign out and forget the stored access token."""
    out: OutputFormatter = ctx.obj["out"]
    _get_auth(ctx).sign_out()
    out.success("Signed out from MobileCoder.")


@main.command()
@click.pass_context
def status(ctx: Any) -> None:
    """Show sign in state and sync settings."""
    out: OutputFormatter = ctx.obj["out"]
    engine = _get_engine(ctx)
    user = _get_auth(ctx).get_current_user()
    settings = engine.settings
    root = settings.resolve_root()

    if out.json_output:
        out.output_json(
            {
                "authenticated": user is not None,
                "email": user.email if user else None,
                "sync_directory": str(root) if root else None,
                "auto_sync": settings.auto_sync,
                "sync_interval": settings.sync_interval,
            }
        )
    else:
        if user:
            out.print(f"Signed in as: {user.email} ({user.device_name})")
        else:
            out.print("Not signed in")
        out.print(f"Sync directory: {root or 'not configured'}")
        out.print(f"Auto sync: {'on' if settings.auto_sync else 'off'}")
        out.print(f"Sync interval: {settings.sync_interval:g}s")

    if user is None:
        ctx.exit(1)


@main.command()
@click.option(
    "--reset",
    is_flag=True,
    help="Forget sync history and upload every file as new",
)
@click.option("--no-progress", is_flag=True, help="Disable progress display")
@click.pass_context
def sync(ctx: Any, reset: bool, no_progress: bool) -> None:
    """Sync every file in the sync directory with MobileCoder.

    Files that were never synced are uploaded. For files synced before the
    newer side wins: a newer remote copy is downloaded, otherwise the local
    copy is uploaded.
    """
    out: OutputFormatter = ctx.obj["out"]
    _require_sign_in(ctx, "sync files")
    engine = _get_engine(ctx)

    try:
        if reset and engine.metadata.clear():
            out.info("Sync history cleared")

        if no_progress or out.quiet or out.json_output:
            results = engine.sync_all_files()
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("{task.completed}/{task.total}"),
                transient=True,
            ) as progress:
                task = progress.add_task("Syncing files with MobileCoder...")

                def update(done: int, total: int, relative_path: str) -> None:
                    progress.update(
                        task, completed=done, total=total, description=relative_path
                    )

                results = engine.sync_all_files(progress_callback=update)
    except (MobileCoderError, OSError) as e:
        out.error(f"Sync error: {e}")
        ctx.exit(1)

    _report_results(out, results)


def _report_results(out: OutputFormatter, results: SyncResults) -> None:
    if out.json_output:
        out.output_json(results.to_dict())
    elif results.failed == 0:
        out.success(f"Successfully synced {pluralize(results.success, 'file')}.")
    else:
        out.warning(results.summary())


@main.command(name="ls")
@click.pass_context
def ls(ctx: Any) -> None:
    """List files stored in MobileCoder."""
    out: OutputFormatter = ctx.obj["out"]
    _require_sign_in(ctx, "list files")
    files = _get_engine(ctx).get_remote_files()

    if out.json_output:
        out.output_json([f.to_dict() for f in files])
        return

    if not files:
        out.info("No remote files")
        return

    rows = [
        [
            f.key,
            f.language,
            get_icon_from_filename(f.key),
            format_date(f.last_modified),
        ]
        for f in sorted(files, key=lambda f: f.key)
    ]
    out.output_table(
        f"MobileCoder files ({len(files)})",
        ["File", "Language", "Icon", "Updated"],
        rows,
    )


@main.command()
@click.argument("key")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Local path (default: KEY inside the sync directory)",
)
@click.pass_context
def download(ctx: Any, key: str, output: Optional[str]) -> None:
    """Download the remote file KEY into the workspace."""
    out: OutputFormatter = ctx.obj["out"]
    _require_sign_in(ctx, "download files")
    engine = _get_engine(ctx)

    try:
        root = engine.root.resolve()
    except MobileCoderError as e:
        out.error(str(e))
        ctx.exit(1)

    if output:
        local_path = Path(output)
    else:
        local_path = (root / key).resolve()
        if root not in local_path.parents:
            out.error(f"Refusing to write outside the sync directory: {key}")
            ctx.exit(1)

    if not engine.download_file(key, local_path):
        out.error(f"Failed to download {key}")
        ctx.exit(1)
    out.success(f"Downloaded {key} to {local_path}")


@main.command()
@click.argument("key")
@click.pass_context
def cat(ctx: Any, key: str) -> None:
    """Print the content of the remote file KEY."""
    out: OutputFormatter = ctx.obj["out"]
    _require_sign_in(ctx, "view files")
    cache = RemoteFileCache(_get_engine(ctx))
    cache.refresh()

    try:
        content = cache.read(key)
    except MobileCoderError as e:
        out.error(str(e))
        ctx.exit(1)
    click.echo(content, nl=False)


@main.command()
@click.argument("key")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.pass_context
def push(ctx: Any, key: str, source: Any) -> None:
    """Overwrite the remote file KEY with SOURCE ('-' for stdin).

    No conflict check is made; the remote content is replaced.
    """
    out: OutputFormatter = ctx.obj["out"]
    _require_sign_in(ctx, "save files")
    cache = RemoteFileCache(_get_engine(ctx))

    try:
        cache.write(key, source.read())
    except MobileCoderError as e:
        out.error(str(e))
        ctx.exit(1)
    out.success(f"Saved {key} to MobileCoder")


@main.command()
@click.argument("key")
@click.pass_context
def edit(ctx: Any, key: str) -> None:
    """Open the remote file KEY in $EDITOR and save it back on exit."""
    out: OutputFormatter = ctx.obj["out"]
    _require_sign_in(ctx, "edit files")
    cache = RemoteFileCache(_get_engine(ctx))
    cache.refresh()

    try:
        original = cache.read(key)
        edited = click.edit(original, extension=Path(key).suffix or ".txt")
        if edited is None or edited == original:
            out.info("No changes")
            return
        cache.write(key, edited)
    except MobileCoderError as e:
        out.error(str(e))
        ctx.exit(1)
    out.success(f"Saved {key} to MobileCoder")


@main.command()
@click.pass_context
def watch(ctx: Any) -> None:
    """Watch the sync directory and sync changed files automatically.

    Changes are collected until no further change happened for the
    configured sync interval, then synced together. Stop with Ctrl+C.
    """
    out: OutputFormatter = ctx.obj["out"]
    _require_sign_in(ctx, "sync files")
    engine = _get_engine(ctx)

    def report(results: SyncResults) -> None:
        if results.failed:
            out.warning(
                f"Auto-synced: {results.success} success, {results.failed} failed"
            )
        elif results.success:
            out.info(f"Auto-synced {pluralize(results.success, 'file')}")

    watcher = FileWatcher(
        engine,
        engine.settings,
        on_batch_synced=report,
        auth_state=_get_auth(ctx).state_changes,
    )
    if not watcher.start():
        out.error("Auto sync is disabled or the sync directory does not exist")
        ctx.exit(1)

    interval = engine.settings.sync_interval
    out.info(f"Watching {engine.root} (press Ctrl+C to stop)")
    if interval <= 0:
        out.warning("Sync interval is 0: changes are detected but not synced")

    try:
        while watcher.running:
            time.sleep(1)
    except KeyboardInterrupt:
        out.info("Stopping...")
    finally:
        watcher.close()


if __name__ == "__main__":
    main()
