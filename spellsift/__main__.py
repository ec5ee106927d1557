"""Entry point for spellsift CLI."""

import json
import sys
from pathlib import Path

import rich_click as click
from rich.console import Console
from rich.table import Table

from spellsift.core.aggregation import totals
from spellsift.core.config import Config, ConfigError, ConfigLoader
from spellsift.core.filter_config import FilterConfigStore
from spellsift.core.plugin import PluginError, PluginManager
from spellsift.core.session import SearchSession
from spellsift.core.settings import JsonFileSettings, MemorySettings
from spellsift.plugins.json_source import JsonSpellSource
from spellsift.utils.log import configure_logging

click.rich_click.TEXT_MARKUP = "rich"
click.rich_click.SHOW_ARGUMENTS = True


def _load_config(config_path: str | None) -> Config:
    """Load an explicit config file, or merge the discovered ones."""
    loader = ConfigLoader()
    if config_path:
        return loader.load(Path(config_path))
    return loader.load_merged()


def _open_settings(settings_path: str | None):
    if settings_path:
        return JsonFileSettings(Path(settings_path))
    return MemorySettings()


def _get_plugin_manager(corpus: str) -> PluginManager:
    """Create the plugin manager with the corpus file as its first source.

    Sources registered through entry points follow, so records from the
    corpus file win on duplicate ids.

    Args:
        corpus: Path to the JSON corpus file.

    Returns:
        Configured PluginManager instance.
    """
    manager = PluginManager()
    manager.register(JsonSpellSource(corpus))
    manager.discover()
    return manager


def _open_session(ctx: click.Context, corpus: str, console: Console) -> SearchSession:
    """Build a SearchSession from the global options and a corpus file.

    Exits with status 1 when the config, settings or corpus is unusable.
    """
    options = ctx.obj
    try:
        config = _load_config(options["config"])
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        ctx.exit(1)

    configure_logging(level="DEBUG" if options["verbose"] else config.logging.level)

    try:
        manager = _get_plugin_manager(corpus)
        spells = manager.load_corpus()
        catalogs = manager.load_catalogs()
    except PluginError as e:
        console.print(f"[red]Error:[/red] {e}")
        ctx.exit(1)

    return SearchSession(
        spells,
        settings=_open_settings(options["settings"]),
        config=config,
        catalogs=catalogs,
    )


def _level_label(session: SearchSession, level: str) -> str:
    if level == "":
        return "Unknown level"
    for member in session.catalogs.spell_levels:
        if member.id == level:
            return member.label or level
    return level


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", is_flag=True, help="Show version and exit.")
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False),
    help="JSON settings file (filter configuration, prefix, recent searches).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="spellsift.toml to use instead of the discovered config files.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def cli(
    ctx: click.Context,
    version: bool,
    settings_path: str | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Spellsift - search and filter a spell corpus.

    Standard queries match spell names. Queries starting with the advanced
    prefix (default [bold]^[/bold]) are field queries such as
    [cyan]^LEVEL:3 AND SCHOOL:evo AND RANGE:30-120[/cyan].
    """
    if version:
        from spellsift import __version__
        click.echo(f"spellsift {__version__}")
        ctx.exit(0)

    ctx.ensure_object(dict)
    ctx.obj.update(settings=settings_path, config=config_path, verbose=verbose)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("corpus", type=click.Path(exists=True, dir_okay=False))
@click.argument("query", required=False, default="")
@click.option("--level", type=str, help="Spell level (0 for cantrips).")
@click.option("--school", type=str, help="School id, e.g. 'evo'.")
@click.option("--min-range", "min_range", type=click.IntRange(min=0), help="Minimum range in feet.")
@click.option("--max-range", "max_range", type=click.IntRange(min=0), help="Maximum range in feet.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json", "count"], case_sensitive=False),
    default="text",
    help="Output format: text (table), json (JSONL), or count (per level).",
)
@click.pass_context
def search(
    ctx: click.Context,
    corpus: str,
    query: str,
    level: str | None,
    school: str | None,
    min_range: int | None,
    max_range: int | None,
    output_format: str,
) -> None:
    """Run one search against CORPUS and print the visible spells."""
    console = Console()
    session = _open_session(ctx, corpus, console)

    controls = {
        key: value
        for key, value in (
            ("level", level),
            ("school", school),
            ("min_range", min_range),
            ("max_range", max_range),
        )
        if value is not None
    }
    try:
        result = session.update_filters(**controls) if controls else session.refresh()
    except ValueError as e:
        console.print(f"[red]Error:[/red] Invalid filter values: {e}")
        ctx.exit(1)

    if query:
        outcome = session.commit(query)
        result = outcome.result
        if outcome.error is not None:
            stderr_console = Console(file=sys.stderr)
            stderr_console.print(
                f"[yellow]Warning:[/yellow] {outcome.error.message}; advanced filters not applied."
            )

    output_format = output_format.lower()
    if output_format == "json":
        for spell in result.spells:
            record = {
                "id": spell.id,
                "name": spell.name,
                "level": spell.level,
                "school": spell.school,
                "details": session.subtitle(spell),
            }
            click.echo(json.dumps(record))
        return

    if output_format == "count":
        for key, stats in result.by_level.items():
            console.print(f"{_level_label(session, key):16s} : {stats.visible}")
        console.print(f"{'Total':16s} : {totals(result.by_level).visible}")
        return

    if not result.spells:
        console.print("[dim]No spells match.[/dim]")
        return

    table = Table(title=f"{result.total_filtered} spells")
    table.add_column("Level", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Details")
    for key, stats in result.by_level.items():
        label = _level_label(session, key)
        for index, spell in enumerate(stats.spells):
            table.add_row(label if index == 0 else "", spell.name, session.subtitle(spell))
    console.print(table)


@cli.command()
@click.argument("corpus", type=click.Path(exists=True, dir_okay=False))
@click.argument("buffer")
@click.pass_context
def suggest(ctx: click.Context, corpus: str, buffer: str) -> None:
    """Show the dropdown the search box would display for BUFFER."""
    console = Console()
    session = _open_session(ctx, corpus, console)
    dropdown = session.suggest(buffer)
    localizer = session.localizer

    if dropdown.status:
        console.print(localizer.format(dropdown.status, dropdown.status_params), style="italic")
    if dropdown.header:
        console.print(f"[bold]{localizer.localize(dropdown.header)}[/bold]")
    if not dropdown.suggestions:
        console.print("[dim]No suggestions.[/dim]")
        return
    for suggestion in dropdown.suggestions:
        label = localizer.localize(suggestion.label)
        console.print(f"  [cyan]{suggestion.kind.value:8s}[/cyan] {label}", highlight=False)


@cli.command()
@click.option("--reset", is_flag=True, help="Restore the default filter configuration.")
@click.pass_context
def filters(ctx: click.Context, reset: bool) -> None:
    """Print the filter configuration stored in the settings file."""
    console = Console()
    options = ctx.obj
    configure_logging(level="DEBUG" if options["verbose"] else "WARNING")

    store = FilterConfigStore(_open_settings(options["settings"]))
    descriptors = store.reset() if reset else store.load()

    table = Table(title="Filter Configuration")
    table.add_column("Order", justify="right")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Enabled", justify="center")
    table.add_column("Sortable", justify="center")
    table.add_column("Search aliases")
    for d in descriptors:
        table.add_row(
            str(d.order),
            d.id,
            d.type,
            "[green]✓[/green]" if d.enabled else "[dim]✗[/dim]",
            "✓" if d.sortable else "",
            ", ".join(d.search_aliases),
        )
    console.print(table)
    for issue in store.issues:
        console.print(f"[yellow]Repaired:[/yellow] {issue.value}")


@cli.command()
@click.pass_context
def sources(ctx: click.Context) -> None:
    """List the spell sources installed through entry points."""
    console = Console()
    manager = PluginManager()
    manager.discover()
    names = manager.list_plugins()

    if not names:
        console.print("[yellow]No sources found.[/yellow]")
        return

    table = Table(title="Available Sources")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Version", style="green")
    table.add_column("Description")
    for name in sorted(names):
        info = manager.get_plugin_info(name)
        if info:
            table.add_row(info["name"], info.get("version", "unknown"), info.get("description", ""))
    console.print(table)


if __name__ == "__main__":
    cli()
