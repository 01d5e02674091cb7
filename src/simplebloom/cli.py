"""
Command-line interface for inspecting and updating Bloom filter snapshots.
"""
import sys

import click
from rich.console import Console
from rich.table import Table

from simplebloom.backends import MemoryBitSink
from simplebloom.config import FilterConfig, configure_logging
from simplebloom.errors import BloomFilterError
from simplebloom.filter import BloomFilter, file_filter
from simplebloom.snapshot import read_snapshot


console = Console()


def _load_readonly(path: str) -> BloomFilter:
    """Open a snapshot in memory, with its recorded rounds, without writing it back."""
    snapshot = read_snapshot(path)
    if snapshot is None:
        raise click.ClickException(f"No snapshot at {path}")
    bits = snapshot.bits
    return BloomFilter(MemoryBitSink(bits.capacity, bits), snapshot.rounds)


@click.group()
@click.option("--log-level", "-l", default="WARNING", help="Log level")
def main(log_level):
    """Simple Bloom filter - probabilistic set membership with pluggable storage."""
    configure_logging(log_level)


@main.command()
@click.argument("snapshot", type=click.Path(dir_okay=False))
@click.argument("items", nargs=-1, required=True)
@click.option("--capacity", "-n", type=int, default=FilterConfig.capacity, help="Number of bits")
@click.option("--rounds", "-k", type=int, default=FilterConfig.rounds, help="Hash rounds")
def put(snapshot, items, capacity, rounds):
    """Add ITEMS to the filter stored at SNAPSHOT."""
    try:
        with file_filter(snapshot, capacity, rounds) as bloom:
            for item in items:
                bloom.put(item)
    except (BloomFilterError, ValueError) as e:
        raise click.ClickException(str(e))

    console.print(f"[green]Added {len(items)} item(s) to {snapshot}[/green]")


@main.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
@click.argument("items", nargs=-1, required=True)
def has(snapshot, items):
    """Check whether ITEMS might be in the filter stored at SNAPSHOT.

    Exits with status 1 when any item is definitely absent.
    """
    try:
        bloom = _load_readonly(snapshot)
    except BloomFilterError as e:
        raise click.ClickException(str(e))

    table = Table(title="Membership")
    table.add_column("Item", style="cyan")
    table.add_column("Result")

    all_present = True
    with bloom:
        for item in items:
            if bloom.has(item):
                table.add_row(item, "[yellow]maybe present[/yellow]")
            else:
                table.add_row(item, "[green]absent[/green]")
                all_present = False

    console.print(table)
    if not all_present:
        sys.exit(1)


@main.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False))
def info(snapshot):
    """Display statistics for the filter stored at SNAPSHOT."""
    try:
        bloom = _load_readonly(snapshot)
    except BloomFilterError as e:
        raise click.ClickException(str(e))

    with bloom:
        stats = bloom.get_stats()

    table = Table(title="Filter Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Snapshot", snapshot)
    table.add_row("Capacity (bits)", str(stats["capacity"]))
    table.add_row("Rounds", str(stats["rounds"]))
    table.add_row("Bits Set", str(stats["bits_set"]))
    table.add_row("Fill Ratio", f"{stats['fill_ratio']:.4f}")
    table.add_row("Est. False Positive Rate", f"{stats['estimated_false_positive_rate']:.6f}")

    console.print(table)


@main.command()
@click.argument("output", type=click.Path())
@click.option("--capacity", "-n", type=int, default=FilterConfig.capacity, help="Number of bits")
@click.option("--rounds", "-k", type=int, default=FilterConfig.rounds, help="Hash rounds")
@click.option("--backend", "-b", type=click.Choice(["memory", "file", "redis"]), default="memory")
@click.option("--snapshot-path", help="Snapshot location for the file backend")
@click.option("--redis-url", help="Redis URL for the redis backend")
def generate_config(output, capacity, rounds, backend, snapshot_path, redis_url):
    """Generate a configuration file."""

    config = FilterConfig(
        capacity=capacity,
        rounds=rounds,
        backend=backend,
        snapshot_path=snapshot_path,
        redis_url=redis_url,
    )

    try:
        config.validate()
    except ValueError as e:
        raise click.ClickException(str(e))

    config.to_file(output)
    console.print(f"[green]Configuration saved to {output}[/green]")


@main.command()
def version():
    """Display version information."""
    from . import __version__
    console.print(f"[cyan]simplebloom v{__version__}[/cyan]")


if __name__ == "__main__":
    main()
