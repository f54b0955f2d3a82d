import json
import logging
import os
import time

import click
import toml
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from tabulate import tabulate

from globwatcher import config
from globwatcher import logger as log_setup
from globwatcher.errors import ConfigError, WatcherError
from globwatcher.watcher import GlobWatcher

CLI_GROUP_NAME = "cli"


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Path to configuration TOML file.")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx, config_path, debug):
    """
    GlobWatcher CLI: watch files matched by glob patterns.
    """
    try:
        cfg = config.load_config(config_path)
    except WatcherError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)
    logging_cfg = cfg.get("logging", {})
    level = "DEBUG" if debug else logging_cfg.get("level", "WARNING")
    log_setup.setup_logger(
        "globwatcher",
        logging_cfg.get("log_dir"),
        "globwatcher.log",
        level=log_setup.level_from_name(level),
        console=True,
    )
    ctx.obj = {"config": cfg, "config_path": config_path, "debug": debug}


def collect_targets(ctx, patterns, **overrides):
    """
    Work out what to watch: the command line patterns, or every configured
    watch group when none are given.

    Returns:
        list: (name, patterns, WatcherOptions) tuples.
    """
    cfg = ctx.obj.get("config")
    options = config.watcher_options_from_config(cfg, **overrides)
    if options.cwd is None:
        options = options.merged(cwd=os.getcwd())

    if patterns:
        return [(CLI_GROUP_NAME, list(patterns), options)]

    groups_path = cfg.get("watch_groups", {}).get("configs_dir")
    if not groups_path:
        raise ConfigError("No patterns given and no watch groups configured")
    groups = config.load_watch_groups_configs(groups_path).get("watch_groups", [])
    if not groups:
        raise ConfigError(f"No watch groups found in {groups_path}")
    return [config.split_watch_group(group, options) for group in groups]


def build_watchers(ctx, patterns, **overrides):
    return [
        (name, GlobWatcher(group_patterns, options))
        for name, group_patterns, options in collect_targets(ctx, patterns, **overrides)
    ]


def format_event(group, kind, *paths, out_format="text"):
    """Render one event for terminal output."""
    if out_format == "json":
        return json.dumps({"group": group, "event": kind, "paths": list(paths), "time": time.time()})
    stamp = time.strftime("%H:%M:%S")
    return f"[dim]{stamp}[/dim] [cyan]{escape(group)}[/cyan] [bold]{kind}[/bold] {escape(' -> '.join(paths))}"


def wait_forever():
    while True:
        time.sleep(1)


@main.command(name="show-config")
@click.pass_context
def show_config(ctx):
    """
    Show the loaded configuration with the effective watcher options.
    """
    cfg = dict(ctx.obj.get("config"))
    try:
        options = config.watcher_options_from_config(cfg)
    except WatcherError as e:
        click.echo(f"Error in configuration: {e}", err=True)
        ctx.exit(1)
    cfg["watcher"] = options.as_dict()
    click.echo(toml.dumps(cfg))


@main.command(name="list")
@click.argument("patterns", nargs=-1)
@click.option("--cwd", default=None, type=click.Path(exists=True, file_okay=False), help="Directory patterns are relative to.")
@click.option("--ignore", "-i", multiple=True, help="Glob pattern to exclude (repeatable).")
@click.option("--format", "-f", "out_format", default="table", type=click.Choice(["table", "plain", "json"], case_sensitive=False), help="Output format.")
@click.pass_context
def list_files(ctx, patterns, cwd, ignore, out_format):
    """
    Resolve glob patterns and show the files and directories that would be watched.
    """
    try:
        watchers = build_watchers(ctx, patterns, cwd=cwd, ignore=list(ignore) or None)
    except WatcherError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    out_format = out_format.lower()
    if out_format == "json":
        click.echo(json.dumps({
            name: {"files": w.files, "directories": w.directories} for name, w in watchers
        }, indent=2))
        return

    rows = []
    for name, w in watchers:
        rows.extend((name, "file", path) for path in w.files)
        rows.extend((name, "directory", path) for path in w.directories)

    if out_format == "plain":
        click.echo(tabulate(rows, headers=["Group", "Type", "Path"]))
    else:
        table = Table(title="GlobWatcher Targets")
        table.add_column("Group", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("Path")
        for row in rows:
            table.add_row(*row)
        Console().print(table)


@main.command()
@click.argument("patterns", nargs=-1)
@click.option("--cwd", default=None, type=click.Path(exists=True, file_okay=False), help="Directory patterns are relative to.")
@click.option("--ignore", "-i", multiple=True, help="Glob pattern to exclude (repeatable).")
@click.option("--lock-duration", "-l", default=None, type=click.IntRange(min=0), help="Cooldown in milliseconds after each event.")
@click.option("--verbose/--quiet", default=None, help="Log watcher internals.")
@click.option("--polling/--native", default=None, help="Poll the filesystem instead of using native notifications.")
@click.option("--format", "-f", "out_format", default="text", type=click.Choice(["text", "json"], case_sensitive=False), help="Event output format.")
@click.pass_context
def watch(ctx, patterns, cwd, ignore, lock_duration, verbose, polling, out_format):
    """
    Watch files matched by PATTERNS (or by the configured watch groups) and
    print every add, delete, change and rename event until interrupted.
    """
    out_format = out_format.lower()
    console = Console(highlight=False)
    if verbose and not ctx.obj.get("debug"):
        logging_cfg = ctx.obj.get("config").get("logging", {})
        log_setup.setup_logger("globwatcher", logging_cfg.get("log_dir"), "globwatcher.log", level=logging.INFO)

    def printer(group):
        def print_event(kind, *paths):
            if out_format == "json":
                click.echo(format_event(group, kind, *paths, out_format="json"))
            else:
                console.print(format_event(group, kind, *paths))
        return print_event

    watchers = []
    try:
        for name, w in build_watchers(
            ctx, patterns, cwd=cwd, ignore=list(ignore) or None,
            lock_duration=lock_duration, verbose=verbose, polling=polling,
        ):
            w.on("all", printer(name))
            watchers.append(w)
            w.start()
    except WatcherError as e:
        for w in watchers:
            w.close()
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    files_count = sum(len(w.files) for w in watchers)
    dirs_count = sum(len(w.directories) for w in watchers)
    click.echo(f"Watching {files_count} file(s) in {dirs_count} directory(ies). Press Ctrl+C to stop.", err=True)
    try:
        wait_forever()
    except KeyboardInterrupt:
        click.echo("Stopping...", err=True)
    finally:
        for w in watchers:
            w.close()


if __name__ == "__main__":
    main()
