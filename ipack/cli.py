"""ipack CLI: the main entry point for the local package registry."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ipack import __version__
from ipack.declaration import ConfigDeclaration, find_declaration
from ipack.errors import IpackError, MissingAlias
from ipack.log import configure_logging
from ipack.settings import IpackSettings
from ipack.toolchain import NpmToolchain
from ipack.workflows.context import IpackContext

console = Console()

USAGE = """\
Usage:
  ipack                             - Runs the .ipackrc in the current directory
                                      (installs 'packs' first, then packs 'alias').
  ipack pack [alias] [directory]    - Builds, packs, versions, and stores the package.
                                      If [directory] is provided, 'npm pack' runs inside it.
                                      Replaces '/' with '-' in the saved .tgz filename.
                                      Removes the previous .tgz for this alias.
  ipack i|install [alias...]        - Installs the latest version of each alias.
                                      Prefix an alias with '%' to save it as a dev dependency.
  ipack all [root] [-i] [-y]        - Packs every project under [root] that declares an alias.
  ipack list                        - Lists registered aliases.
  ipack help                        - Shows this help message.

An alias prefixed with '!' is ignored."""


class AliasedGroup(click.Group):
    """Click group that accepts short aliases for some commands."""

    ALIASES = {"i": "install"}

    def get_command(self, ctx, cmd_name):
        return super().get_command(ctx, self.ALIASES.get(cmd_name, cmd_name))

    def resolve_command(self, ctx, args):
        _, cmd, args = super().resolve_command(ctx, args)
        return (cmd.name if cmd else None), cmd, args


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/] {escape(message)}")
    raise SystemExit(1)


def _load_local_declaration(ipack_ctx: IpackContext) -> ConfigDeclaration | None:
    path = find_declaration(ipack_ctx.project_root, ipack_ctx.settings.declaration_file_name)
    return ConfigDeclaration.load(path) if path else None


@click.group(cls=AliasedGroup, invoke_without_command=True)
@click.version_option(version=__version__)
@click.option("--registry-dir", "-r", default=None, help="Registry directory (default: $IPACK_HOME or ~/.ipacks)")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
@click.pass_context
def main(ctx: click.Context, registry_dir: str | None, verbose: bool):
    """ipack: local versioned packages for npm projects.

    Pack a project under a short alias, then install the latest packed
    version of that alias into any other project.
    """
    configure_logging(verbose)
    settings = IpackSettings.resolve(registry_dir)
    ctx.obj = IpackContext.create(Path.cwd(), settings, NpmToolchain())

    if ctx.invoked_subcommand is None:
        _run_declared(ctx.obj)


def _run_declared(ipack_ctx: IpackContext) -> None:
    from ipack.workflows.declared import run_declared

    try:
        declaration = _load_local_declaration(ipack_ctx)
    except IpackError as e:
        _fail(str(e))
    if declaration is None:
        console.print(f"[red]Error:[/] No command given and no {ipack_ctx.settings.declaration_file_name} found.")
        console.print(USAGE, highlight=False, markup=False)
        raise SystemExit(1)

    result = run_declared(ipack_ctx, declaration)
    if result.installs is not None:
        _print_installs(result.installs)
    if result.published is not None:
        _print_published(result.published)
    if result.publish_error is not None:
        console.print(f"[red]Error:[/] {escape(str(result.publish_error))}")
    if not result.ok:
        raise SystemExit(1)


# ── Pack ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("alias", required=False)
@click.argument("directory", required=False)
@click.pass_obj
def pack(ipack_ctx: IpackContext, alias: str | None, directory: str | None):
    """Build, pack, version, and store the current project under ALIAS.

    ALIAS and DIRECTORY default to the 'alias' and 'directory' of the
    local .ipackrc.
    """
    from ipack.workflows.publish import publish

    try:
        if alias is None:
            declaration = _load_local_declaration(ipack_ctx)
            if declaration is None or not declaration.has_publish_intent:
                raise MissingAlias("Alias is required for 'pack' command.")
            alias = declaration.alias
            directory = directory or declaration.directory

        console.print(f"\n[bold blue]ipack[/]: Packing {escape(str(ipack_ctx.project_root))} as '{escape(alias)}'\n")
        result = publish(ipack_ctx, alias, directory)
    except IpackError as e:
        _fail(str(e))

    _print_published(result)


def _print_published(result) -> None:
    if result.skipped:
        console.print(f"  [yellow]Skipped[/] ignored alias '{escape(result.alias)}'")
        return
    for warning in result.warnings:
        console.print(f"  [yellow]![/] {escape(warning)}")
    console.print(
        f"  [green]Packed[/] '{escape(result.package_name)}' as '{escape(result.alias)}' version {result.version}"
    )
    console.print(f"  Saved to: {escape(str(result.artifact_path))}")


# ── Install ──────────────────────────────────────────────────────────


@main.command()
@click.argument("aliases", nargs=-1)
@click.pass_obj
def install(ipack_ctx: IpackContext, aliases: tuple[str, ...]):
    """Install the latest version of each ALIAS into the current project.

    With no ALIASES, installs the 'packs' listed in the local .ipackrc.
    Prefix an alias with '%' to save it under devDependencies.
    """
    from ipack.workflows.consume import install_many

    try:
        if not aliases:
            declaration = _load_local_declaration(ipack_ctx)
            if declaration is None or not declaration.has_consume_intent:
                raise MissingAlias("Alias is required for 'install' command.")
            aliases = tuple(declaration.packs)
    except IpackError as e:
        _fail(str(e))

    batch = install_many(ipack_ctx, aliases)
    _print_installs(batch)
    if not batch.ok:
        raise SystemExit(1)


def _print_installs(batch) -> None:
    for result in batch.results:
        if result.skipped:
            console.print(f"  [yellow]Skipped[/] ignored alias '{escape(result.alias)}'")
            continue
        for warning in result.warnings:
            console.print(f"  [yellow]![/] {escape(warning)}")
        section = "devDependencies" if result.dev else "dependencies"
        if result.already_installed:
            console.print(f"  [green]OK[/] {escape(result.alias)} version {result.version} already installed")
        else:
            console.print(
                f"  [green]Installed[/] {escape(result.alias)} (package '{escape(result.package_name)}' "
                f"version {result.version}) into {section}"
            )
    for alias, error in batch.failures:
        console.print(f"  [red]FAIL[/] {escape(alias)}: {escape(str(error))}")


# ── All ──────────────────────────────────────────────────────────────


@main.command(name="all")
@click.argument("root", required=False, type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--install", "-i", "install_first", is_flag=True, help="Run 'npm install' in each project first")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def pack_all(ipack_ctx: IpackContext, root: Path | None, install_first: bool, yes: bool):
    """Pack every project under ROOT whose .ipackrc declares an alias."""
    from ipack.workflows.discovery import DiscoveryStatus, publish_all

    root = (root or ipack_ctx.project_root).resolve()
    console.print(f"\n[bold blue]ipack[/]: Scanning {escape(str(root))}\n")

    def confirm(candidates) -> bool:
        table = Table(title=f"Projects to pack ({len(candidates)} found)")
        table.add_column("Alias", style="cyan")
        table.add_column("Directory")
        table.add_column("Pack dir", style="dim")
        for c in candidates:
            table.add_row(escape(c.alias), escape(str(c.directory)), escape(c.subdirectory or "."))
        console.print(table)
        if yes:
            return True
        return click.confirm("Pack all of the above?", default=False)

    report = publish_all(ipack_ctx, root, install_first=install_first, confirm=confirm)

    for warning in report.warnings:
        console.print(f"  [yellow]![/] {escape(warning)}")

    if report.status == DiscoveryStatus.NO_DECLARATIONS:
        console.print(f"[yellow]No {ipack_ctx.settings.declaration_file_name} files found.[/]")
        return
    if report.status == DiscoveryStatus.NO_CANDIDATES:
        console.print("[yellow]No declarations with an alias found.[/]")
        return
    if report.status == DiscoveryStatus.CANCELLED:
        console.print("[yellow]Cancelled.[/]")
        return

    for result in report.published:
        _print_published(result)
    for candidate, error in report.failures:
        console.print(f"  [red]FAIL[/] {escape(candidate.alias)} ({escape(str(candidate.directory))}): {escape(str(error))}")
    if not report.ok:
        raise SystemExit(1)


# ── List ─────────────────────────────────────────────────────────────


@main.command(name="list")
@click.pass_obj
def list_entries(ipack_ctx: IpackContext):
    """List all aliases in the registry."""
    try:
        records = ipack_ctx.store.records()
    except IpackError as e:
        _fail(str(e))

    if not records:
        console.print("[yellow]Registry is empty.[/]")
        return

    table = Table(title=f"Registry ({len(records)} aliases)")
    table.add_column("Alias", style="cyan")
    table.add_column("Package")
    table.add_column("Version", justify="right")
    table.add_column("Artifact", justify="center")

    for alias in sorted(records):
        record = records[alias]
        present = ipack_ctx.store.artifact_path(alias, record.version).is_file()
        table.add_row(escape(alias), escape(record.package_name), str(record.version), "[green]Y[/]" if present else "[red]N[/]")

    console.print(table)


# ── Help ─────────────────────────────────────────────────────────────


@main.command(name="help")
def show_help():
    """Show usage."""
    console.print(USAGE, highlight=False, markup=False)


if __name__ == "__main__":
    main()
