"""CLI interface for artifactpress."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer

from artifactpress import __version__
from artifactpress.builder.manifest_store import ManifestStore
from artifactpress.errors import ArtifactError, InvalidArtifactId
from artifactpress.model.settings import ArtifactSettings
from artifactpress.render.renderer import Renderer
from artifactpress.render.templating import create_environment, write_default_templates
from artifactpress.service import ArtifactService
from artifactpress.storage.json_io import dumps
from artifactpress.storage.namespace import LocalNamespaceStorage
from artifactpress.storage.records import JsonEntityStore

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="artifactpress",
    help="Publish self-contained HTML/CSS/JS artifacts as managed, policy-checked pages.",
    no_args_is_help=True,
)


@dataclass
class _Context:
    settings: ArtifactSettings
    store: JsonEntityStore
    storage: LocalNamespaceStorage
    service: ArtifactService
    renderer: Renderer


def _build(settings: ArtifactSettings) -> _Context:
    store = JsonEntityStore(settings.records_dir)
    storage = LocalNamespaceStorage(settings.assets_dir, settings.assets_url)
    manifests = ManifestStore(store)
    return _Context(
        settings=settings,
        store=store,
        storage=storage,
        service=ArtifactService(store, storage, manifests),
        renderer=Renderer(
            store,
            storage,
            manifests,
            templates=create_environment(settings.templates_dir),
            site_name=settings.site_name,
        ),
    )


def _ctx(ctx: typer.Context) -> _Context:
    obj = ctx.obj
    if not isinstance(obj, _Context):  # pragma: no cover - callback always runs first
        obj = _build(ArtifactSettings.from_cli())
        ctx.obj = obj
    return obj


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


@app.command()
def publish(
    ctx: typer.Context,
    artifact_id: Annotated[str, typer.Argument(help="Artifact id (letters, digits, - and _)")],
    html_file: Annotated[
        Path,
        typer.Argument(
            help="HTML document or fragment to publish",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    title: Annotated[
        str | None,
        typer.Option("--title", help="Display title (defaults to the file name on create)"),
    ] = None,
    description: Annotated[
        str | None,
        typer.Option("--description", help="Short description stored with the artifact"),
    ] = None,
) -> None:
    """Create or update an artifact from an HTML file."""
    c = _ctx(ctx)
    try:
        raw_html = html_file.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        _fail(f"{html_file} is not valid UTF-8 ({exc.reason} at byte {exc.start})")
        return
    except OSError as exc:
        _fail(f"cannot read {html_file}: {exc}")
        return
    try:
        if c.store.exists(artifact_id):
            manifest = c.service.update(artifact_id, raw_html=raw_html, title=title, description=description)
            action = "Updated"
        else:
            manifest = c.service.create(
                artifact_id, title or html_file.stem, raw_html, description=description
            )
            action = "Created"
    except (ArtifactError, InvalidArtifactId) as exc:
        _fail(str(exc))
        return

    if manifest is None:
        _fail(f"artifact {artifact_id} was not republished")
        return
    typer.echo(f"{action} artifact {artifact_id}")
    typer.echo(f"  styles:  {len(manifest.styles)}")
    typer.echo(f"  scripts: {len(manifest.scripts)}")
    typer.echo(f"  assets:  {c.storage.base_dir(artifact_id)}")


@app.command()
def render(
    ctx: typer.Context,
    artifact_id: Annotated[str, typer.Argument(help="Artifact id")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the page here instead of stdout"),
    ] = None,
    headers: Annotated[
        bool,
        typer.Option("--headers/--no-headers", help="Print response headers before the page"),
    ] = False,
) -> None:
    """Render an artifact page the way it would be served."""
    c = _ctx(ctx)
    try:
        page = c.renderer.render(artifact_id)
    except InvalidArtifactId as exc:
        _fail(str(exc))
        return
    if page is None:
        _fail(f"artifact {artifact_id} not found")
        return

    if headers:
        for name, value in page.headers.items():
            typer.echo(f"{name}: {value}", err=output is None)
        typer.echo(f"X-Artifact-Branch: {page.branch.value}", err=output is None)
    if output is not None:
        output.write_text(page.body, encoding="utf-8")
        typer.echo(f"Wrote {page.branch.value} page to {output}")
    else:
        typer.echo(page.body)


@app.command()
def manifest(
    ctx: typer.Context,
    artifact_id: Annotated[str, typer.Argument(help="Artifact id")],
) -> None:
    """Print the stored manifest as JSON."""
    c = _ctx(ctx)
    try:
        stored = c.renderer.manifests.load(artifact_id)
    except (ArtifactError, InvalidArtifactId, KeyError, TypeError, ValueError) as exc:
        _fail(str(exc))
        return
    if stored is None:
        _fail(f"no manifest stored for artifact {artifact_id}")
        return
    data = stored.to_dict()
    data["body_fragment"] = stored.body_fragment
    typer.echo(dumps(data))


@app.command()
def reprocess(
    ctx: typer.Context,
    artifact_id: Annotated[str, typer.Argument(help="Artifact id")],
) -> None:
    """Re-run extraction over the stored raw HTML (migrates legacy artifacts)."""
    c = _ctx(ctx)
    try:
        result = c.service.reprocess(artifact_id)
    except (ArtifactError, InvalidArtifactId) as exc:
        _fail(str(exc))
        return
    if result is None:
        _fail(f"artifact {artifact_id} has no raw HTML")
        return
    typer.echo(f"Reprocessed artifact {artifact_id}")


@app.command()
def discard(
    ctx: typer.Context,
    artifact_id: Annotated[str, typer.Argument(help="Artifact id")],
) -> None:
    """Delete an artifact's asset files and stored content."""
    c = _ctx(ctx)
    try:
        c.service.delete(artifact_id)
    except (ArtifactError, InvalidArtifactId) as exc:
        _fail(str(exc))
        return
    typer.echo(f"Discarded artifact {artifact_id}")


@app.command("init-templates")
def init_templates(
    target: Annotated[Path, typer.Argument(help="Directory to write the templates into")],
) -> None:
    """Write the built-in page templates out for customization."""
    for path in write_default_templates(target):
        typer.echo(f"Wrote {path}")


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"artifactpress version {__version__}")


def version_callback(value: bool) -> None:
    """Version callback for --version flag."""
    if value:
        typer.echo(f"artifactpress version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    root: Annotated[
        Path | None,
        typer.Option("--root", help="Storage root for records and assets (env: ARTIFACTPRESS_ROOT)"),
    ] = None,
    assets_url: Annotated[
        str | None,
        typer.Option(
            "--assets-url",
            help="Public URL the asset namespaces are served under (env: ARTIFACTPRESS_ASSETS_URL)",
        ),
    ] = None,
    templates_dir: Annotated[
        Path | None,
        typer.Option("--templates-dir", help="Directory with template overrides"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """
    artifactpress - publish untrusted HTML artifacts as managed pages.

    Publishing splits an artifact's HTML into style and script files plus
    head/body fragments. Rendering re-assembles the page, filters the body
    markup through an allow-list and emits a matching Content-Security-Policy.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    try:
        settings = ArtifactSettings.from_cli(
            root=root, assets_url=assets_url, templates_dir=templates_dir
        )
    except ValueError as exc:
        _fail(str(exc))
        return
    logger.debug("Settings: %s", settings.to_dict())
    ctx.obj = _build(settings)


if __name__ == "__main__":  # pragma: no cover - executed only via `python -m`
    app()
