# cli.py
import asyncio
import logging
import sys

import click

from quickshare_api.backend import Backend, create_backend
from quickshare_api.config.settings import get_settings
from quickshare_api.exceptions import BackendError, NotFoundError, UploadFailedError, UploadValidationError
from quickshare_api.services.confirm import ConfirmDialog
from quickshare_api.services.files import FileListView
from quickshare_api.services.posts import PostEditorView
from quickshare_api.services.uploads import LocalFile, UploadTask

logger = logging.getLogger(__name__)


def _backend(ctx: click.Context) -> Backend:
    if "backend" not in ctx.obj:
        ctx.obj["backend"] = create_backend(ctx.obj["settings"])
    return ctx.obj["backend"]


def prompt(dialog: ConfirmDialog, assume_yes: bool = False):
    """Render a confirmation dialog on the terminal; anything but yes cancels."""
    if assume_yes:
        return dialog.confirm()
    try:
        confirmed = click.confirm(dialog.message, default=False)
    except click.Abort:
        confirmed = False
    return dialog.confirm() if confirmed else dialog.cancel()


@click.group()
@click.pass_context
def cli(ctx):
    """Quickshare: share files and text posts"""
    ctx.ensure_object(dict)
    if "settings" not in ctx.obj:
        ctx.obj["settings"] = get_settings()
    logging.basicConfig(
        level=ctx.obj["settings"].log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.pass_context
def show_config(ctx):
    """Show current configuration"""
    click.echo("Current Configuration:")
    for key, value in ctx.obj["settings"].masked().items():
        click.echo(f"  {key}: {value}")


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.pass_context
def serve(ctx, host, port):
    """Run the HTTP API"""
    import uvicorn
    from quickshare_api.main import create_app

    uvicorn.run(create_app(ctx.obj["settings"], backend=_backend(ctx)), host=host, port=port)


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def upload(ctx, paths):
    """Upload one or more files"""
    def on_progress(task: UploadTask):
        if task.error:
            click.echo(f"  {task.file.name}: failed ({task.error})")
        elif task.result is not None:
            click.echo(f"  {task.file.name}: done -> {task.result.public_url}")

    backend = _backend(ctx)
    orchestrator = backend.orchestrator(on_progress=on_progress)
    files = [LocalFile.from_path(path) for path in paths]
    try:
        asyncio.run(orchestrator.upload_all(files))
    except UploadValidationError as e:
        raise click.UsageError(str(e))
    except UploadFailedError as e:
        backend.file_count.invalidate()
        click.echo(f"{orchestrator.summary}. Upload failed: {e}", err=True)
        sys.exit(1)
    backend.file_count.invalidate()
    click.echo(orchestrator.summary)


@cli.command()
@click.option("--page", default=1, show_default=True, type=click.IntRange(min=1))
@click.pass_context
def list_files(ctx, page):
    """List uploaded files, newest first"""
    view = FileListView(_backend(ctx).files)
    if view.load(page) is None:
        click.echo(f"Error: {view.error}", err=True)
        sys.exit(1)

    if not view.files:
        click.echo("No files uploaded yet")
    for stored in view.files:
        click.echo(f"{stored.name}\t{stored.size}\t{stored.created_at:%Y-%m-%d %H:%M}\t{stored.public_url}")
    click.echo(f"Page {view.page} of {view.total_pages} ({view.total_count} files)")


@cli.command()
@click.argument("name")
@click.option("--yes", is_flag=True, help="Skip the confirmation")
@click.pass_context
def delete_file(ctx, name, yes):
    """Delete an uploaded file"""
    view = FileListView(_backend(ctx).files)
    dialog = view.request_delete(name)
    deleted = prompt(dialog, assume_yes=yes)
    if view.error:
        click.echo(f"Error: {view.error}", err=True)
        sys.exit(1)
    click.echo(f"Deleted {name}" if deleted else "Cancelled")


@cli.command()
@click.pass_context
def list_posts(ctx):
    """List text posts, newest first"""
    view = PostEditorView(_backend(ctx).posts)
    view.load()
    if view.error:
        click.echo(f"Error: {view.error}", err=True)
        sys.exit(1)
    for post in view.posts:
        edited = " (edited)" if post.edited else ""
        click.echo(f"{post.id}\t{post.title}\t{post.word_count} words{edited}")


@cli.command()
@click.argument("post_id")
@click.pass_context
def copy_post(ctx, post_id):
    """Print a post as plain text"""
    view = PostEditorView(_backend(ctx).posts, clipboard=click.echo)
    try:
        post = view.service.get(post_id)
    except (NotFoundError, BackendError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    view.copy_to_clipboard(post)


@cli.command()
@click.argument("post_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation")
@click.pass_context
def delete_post(ctx, post_id, yes):
    """Delete a text post"""
    view = PostEditorView(_backend(ctx).posts)
    deleted = prompt(view.request_delete(post_id), assume_yes=yes)
    if view.error:
        click.echo(f"Error: {view.error}", err=True)
        sys.exit(1)
    click.echo(f"Deleted {post_id}" if deleted else "Cancelled")


if __name__ == "__main__":
    cli()
