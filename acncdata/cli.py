"""
acncdata CLI - Command Line Interface

Entry point for importing the ACNC AIS history and querying it.
"""

from pathlib import Path

import click
from tabulate import tabulate

from acncdata import __version__
from acncdata.config import config
from acncdata.logging_setup import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="acncdata")
@click.option("--db", "db_path", type=click.Path(dir_okay=False), help="SQLite database file")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
@click.pass_context
def cli(ctx, db_path, log_level):
    """acncdata - ACNC Annual Information Statement history.

    Imports the yearly ACNC AIS exports into a local database and answers
    search, trend and sector queries over it.
    """
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path) if db_path else config.database_path
    configure_logging(log_level or config.log_level)


def _open_store(ctx, read_only: bool = False):
    from acncdata.database import Store

    return Store.from_path(ctx.obj["db_path"], read_only=read_only)


def _open_queries(ctx):
    """Read-only query layer, or exit if the database is unusable."""
    from acncdata.queries import CharityQueries

    try:
        store = _open_store(ctx, read_only=True)
        if not store.has_schema():
            raise click.ClickException("Database has no tables. Run 'acncdata init' first.")
    except click.ClickException:
        raise
    except Exception as e:
        click.echo(click.style(f"Database unavailable: {e}", fg="red"))
        raise SystemExit(1)
    return CharityQueries(store)


def _money(value) -> str:
    return f"${value:,.0f}" if value is not None else "-"


# =============================================================================
# Init & Config Commands
# =============================================================================

@cli.command()
@click.option("--drop", is_flag=True, help="Drop existing tables before creating")
@click.pass_context
def init(ctx, drop):
    """Initialize the database and create all tables."""
    click.echo("Initializing ACNC database...")

    try:
        store = _open_store(ctx)
        with store.engine.connect():
            pass
        click.echo(f"  Database: {ctx.obj['db_path']}")

        if drop:
            if click.confirm("This will DELETE all existing data. Continue?"):
                click.echo("  Dropping existing tables...")
                store.drop_schema()
            else:
                click.echo("Aborted.")
                return

        click.echo("  Creating tables...")
        store.ensure_schema()
    except Exception as e:
        click.echo(click.style(f"  Database initialization failed: {e}", fg="red"))
        raise SystemExit(1)

    click.echo(click.style("Database initialized successfully!", fg="green"))


@cli.command("config")
@click.option("--show", is_flag=True, help="Show current configuration")
def show_config(show):
    """View configuration."""
    if show:
        click.echo("\n=== Current Configuration ===\n")
        click.echo(f"Database Path:  {config.database_path}")
        click.echo(f"Data Directory: {config.data_dir}")
        click.echo(f"Web Server:     {config.web_host}:{config.web_port}")
        click.echo(f"Serve Fallback: {config.serve_fallback}")
        click.echo(f"Log Level:      {config.log_level}")
        click.echo("\nImport Files:")
        for name, year in sorted(config.import_files.items(), key=lambda i: i[1]):
            click.echo(f"  {year}  {name}")
    else:
        click.echo("Edit config.yaml directly or set environment variables.")
        click.echo("Use 'acncdata config --show' to view current settings.")


# =============================================================================
# Import Commands
# =============================================================================

@cli.group("import")
def import_group():
    """Historical data import commands."""
    pass


@import_group.command("run")
@click.option("--year", "-y", "years", type=int, multiple=True, help="Only import this year (repeatable)")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Directory holding the export files")
@click.option("--replace", is_flag=True, help="Delete each year's reports before importing it")
@click.pass_context
def import_run(ctx, years, data_dir, replace):
    """Import every configured export file."""
    from acncdata.ingestion import run_import, print_summary

    data_dir = Path(data_dir) if data_dir else config.data_dir
    click.echo(f"Importing historical ACNC data from {data_dir}...")

    try:
        store = _open_store(ctx)
        tasks = run_import(
            store,
            config.import_files,
            data_dir,
            years=list(years) or None,
            replace=replace,
            show_progress=True,
        )
    except Exception as e:
        click.echo(click.style(f"Import aborted: {e}", fg="red"))
        raise SystemExit(1)

    print_summary(tasks)


@import_group.command("file")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.argument("year", type=int)
@click.option("--replace", is_flag=True, help="Delete the year's reports before importing")
@click.pass_context
def import_file(ctx, path, year, replace):
    """Import a single export file for a reporting year."""
    from acncdata.ingestion import BulkFileLoader

    try:
        store = _open_store(ctx)
        store.ensure_schema()
        result = BulkFileLoader(store, show_progress=True).import_file(path, year, replace=replace)
    except Exception as e:
        click.echo(click.style(f"Import failed: {e}", fg="red"))
        raise SystemExit(1)

    click.echo(
        f"\nCompleted: {result.imported:,} imported, {result.skipped:,} skipped, "
        f"{result.errors:,} errors in {result.elapsed:.1f}s"
    )
    for message in result.error_messages:
        click.echo(click.style(f"  {message}", fg="yellow"))


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--year", "-y", type=int, required=True, help="Reporting year of the file")
def inspect(path, year):
    """Show how each column of an export file will be imported."""
    from acncdata.ingestion import read_rows
    from acncdata.normalization import classify_column, era_for_year, normalize_column_name

    rows = read_rows(path)
    if not rows:
        click.echo("File has no data rows.")
        return

    click.echo(f"\n{Path(path).name}: {len(rows):,} records, {len(rows[0])} columns, "
               f"{era_for_year(year).value} layout\n")

    table = []
    for column in rows[0]:
        target = classify_column(column, year)
        if target is None:
            target = click.style(f"extended: {normalize_column_name(column)}", fg="yellow")
        elif target == "ignored":
            target = click.style("ignored", fg="red")
        table.append([column[:60], target])

    click.echo(tabulate(table, headers=["Column", "Imported As"], tablefmt="simple"))


# =============================================================================
# Query Commands
# =============================================================================

@cli.group()
def query():
    """Query the imported data."""
    pass


@query.command("years")
@click.pass_context
def query_years(ctx):
    """List reporting years in the database."""
    years = _open_queries(ctx).get_available_years()
    if not years:
        click.echo("No reports imported yet.")
        return
    click.echo(", ".join(str(y) for y in years))


@query.command("summary")
@click.pass_context
def query_summary(ctx):
    """Show database totals and the largest reports."""
    summary = _open_queries(ctx).get_database_summary()

    click.echo("\n=== Database Statistics ===\n")
    click.echo(f"Total charities:   {summary['charities']:,}")
    click.echo(f"Total AIS reports: {summary['reports']:,}")
    click.echo(f"Year range:        {summary['min_year'] or '-'} - {summary['max_year'] or '-'}")

    if summary["top_charities"]:
        click.echo("\nTop 5 Charities by Revenue:")
        rows = [
            [c["charity_name"][:50], c["report_year"], _money(c["total_revenue"])]
            for c in summary["top_charities"]
        ]
        click.echo(tabulate(rows, headers=["Name", "Year", "Revenue"], tablefmt="simple"))


@query.command("stats")
@click.argument("year", type=int)
@click.pass_context
def query_stats(ctx, year):
    """Show aggregate statistics for a year."""
    stats = _open_queries(ctx).get_yearly_stats(year)

    click.echo(f"\n=== {year} ===\n")
    click.echo(f"Charities reporting:   {stats['total_charities']:,}")
    click.echo(f"  Small / Medium / Large: {stats['small_charities']:,} / "
               f"{stats['medium_charities']:,} / {stats['large_charities']:,}")
    click.echo(f"With revenue:          {stats['charities_with_revenue']:,}")
    click.echo(f"Total revenue:         {_money(stats['total_revenue'])}")
    click.echo(f"Average revenue:       {_money(stats['avg_revenue'])}")
    click.echo(f"Total assets:          {_money(stats['total_assets'])}")


@query.command("top")
@click.argument("year", type=int)
@click.option("--limit", "-n", default=10)
@click.pass_context
def query_top(ctx, year, limit):
    """Largest charities by revenue for a year."""
    results = _open_queries(ctx).get_top_charities(year, limit)
    if not results:
        click.echo(f"No revenue data for {year}.")
        return

    rows = [
        [c["abn"], c["charity_name"][:50], c["charity_size"] or "-",
         _money(c["total_revenue"]), _money(c["total_assets"])]
        for c in results
    ]
    click.echo(tabulate(rows, headers=["ABN", "Name", "Size", "Revenue", "Assets"], tablefmt="simple"))


@query.command("sectors")
@click.argument("year", type=int)
@click.pass_context
def query_sectors(ctx, year):
    """Revenue and assets by charity size for a year."""
    results = _open_queries(ctx).get_sector_analysis(year)
    if not results:
        click.echo(f"No data for {year}.")
        return

    rows = [
        [s["charity_size"], f"{s['count']:,}", _money(s["total_revenue"]),
         _money(s["avg_revenue"]), _money(s["total_assets"]), _money(s["avg_assets"])]
        for s in results
    ]
    click.echo(tabulate(
        rows,
        headers=["Size", "Count", "Revenue", "Avg Revenue", "Assets", "Avg Assets"],
        tablefmt="simple",
    ))


@query.command("search")
@click.argument("text", default="")
@click.option("--size", type=click.Choice(["Small", "Medium", "Large"], case_sensitive=False))
@click.option("--year", "-y", type=int)
@click.option("--min-revenue", type=float, default=0)
@click.option("--max-revenue", type=float)
@click.option("--limit", "-n", default=20)
@click.pass_context
def query_search(ctx, text, size, year, min_revenue, max_revenue, limit):
    """Search charities by name."""
    results = _open_queries(ctx).search_charities(
        search=text, size=size or "", year=year,
        min_revenue=min_revenue, max_revenue=max_revenue, limit=limit,
    )
    if not results:
        click.echo(f"No charities found matching '{text}'")
        return

    rows = [
        [c["abn"], c["charity_name"][:50], c["charity_size"] or "-",
         c["report_year"], _money(c["total_revenue"])]
        for c in results
    ]
    click.echo(tabulate(rows, headers=["ABN", "Name", "Size", "Year", "Revenue"], tablefmt="simple"))


@query.command("similar")
@click.argument("name")
@click.option("--limit", "-n", default=10)
@click.option("--min-score", default=80, help="Minimum similarity 0-100")
@click.pass_context
def query_similar(ctx, name, limit, min_score):
    """Fuzzy search for charities with a similar name."""
    results = _open_queries(ctx).search_similar_names(name, limit, min_score)
    if not results:
        click.echo(f"No charities similar to '{name}'")
        return

    rows = [[c["abn"], c["charity_name"][:60], c["score"]] for c in results]
    click.echo(tabulate(rows, headers=["ABN", "Name", "Score"], tablefmt="simple"))


@query.command("charity")
@click.argument("abn")
@click.pass_context
def query_charity(ctx, abn):
    """Show a charity and its reports."""
    details = _open_queries(ctx).get_charity_details(abn)
    if not details:
        click.echo(f"Charity {abn} not found.")
        return

    charity = details["charity"]
    religious = charity["basic_religious_charity"]
    click.echo(f"\n=== Charity: {charity['charity_name']} ===\n")
    click.echo(f"ABN:       {charity['abn']}")
    click.echo(f"Size:      {charity['charity_size'] or 'Unknown'}")
    click.echo(f"Religious: {'Unknown' if religious is None else ('Yes' if religious else 'No')}")
    click.echo(f"Website:   {charity['charity_website'] or 'N/A'}")
    click.echo(f"Updated:   {charity['updated_at']}")
    if charity["description"]:
        click.echo(f"\nDescription:\n{charity['description']}")

    rows = []
    for report in details["reports"]:
        fin = report["financials"] or {}
        staff = report["staff"] or {}
        rows.append([
            report["report_year"],
            _money(fin.get("total_revenue")),
            _money(fin.get("total_expenses")),
            _money(fin.get("total_assets")),
            staff.get("staff_full_time", "-"),
            staff.get("staff_volunteers", "-"),
        ])
    click.echo()
    click.echo(tabulate(
        rows,
        headers=["Year", "Revenue", "Expenses", "Assets", "Full Time", "Volunteers"],
        tablefmt="simple",
    ))


@query.command("trends")
@click.argument("abn")
@click.pass_context
def query_trends(ctx, abn):
    """Show a charity's financial history."""
    trends = _open_queries(ctx).get_financial_trends(abn)
    if not trends:
        click.echo(f"No financial history for {abn}.")
        return

    rows = [
        [t["report_year"], _money(t["total_revenue"]), _money(t["total_expenses"]),
         _money(t["net_surplus_deficit"]), _money(t["total_assets"]), _money(t["total_liabilities"])]
        for t in trends
    ]
    click.echo(tabulate(
        rows,
        headers=["Year", "Revenue", "Expenses", "Surplus", "Assets", "Liabilities"],
        tablefmt="simple",
    ))


# =============================================================================
# Server Command
# =============================================================================

@cli.command()
@click.option("--host", default=None, help="Bind address")
@click.option("--port", type=int, default=None, help="Port")
@click.option("--debug", is_flag=True, help="Include error messages in 500 responses")
@click.pass_context
def serve(ctx, host, port, debug):
    """Start the JSON API server."""
    import uvicorn

    from acncdata.api import create_app, open_queries

    queries = open_queries(ctx.obj["db_path"], config.serve_fallback)
    if queries is None:
        click.echo(click.style("Database unavailable; data routes will answer 503.", fg="yellow"))

    host = host or config.web_host
    port = port or config.web_port
    click.echo(f"ACNC API server running at http://{host}:{port}")
    uvicorn.run(create_app(queries, debug=debug), host=host, port=port, log_level="warning")


if __name__ == "__main__":
    cli()
