"""
Veedor CLI — command-line interface.

Usage:
    veedor init
    veedor import-csv movimientos.csv
    veedor summary --year 2024 --month 1
    veedor add-transaction -- 15/01/2024 "Cena restaurante" -45,80
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine, TypeVar

import pydantic
import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from veedor import __version__
from veedor.config import VeedorConfig
from veedor.errors import NotFoundError, VeedorError
from veedor.models.report import BudgetStatus

T = TypeVar("T")

app = typer.Typer(
    name="veedor",
    help="💶 Veedor — personal finance tracker",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

_STATUS_COLORS = {
    BudgetStatus.OK: "green",
    BudgetStatus.WARN: "yellow",
    BudgetStatus.DANGER: "red",
}


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]Veedor[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
    config: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML config file",
    ),
    data: str = typer.Option(
        None,
        "--data",
        "-d",
        help="Path to the JSON data file",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="DEBUG, INFO, WARNING or ERROR",
    ),
) -> None:
    """💶 Veedor — track income, expenses and monthly budgets."""
    try:
        settings = VeedorConfig.load(config, data_file=data, log_level=log_level.upper() if log_level else None)
    except (VeedorError, pydantic.ValidationError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/red] invalid configuration: {escape(str(e))}")
        raise typer.Exit(1) from e
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )
    ctx.obj = settings


def _config(ctx: typer.Context) -> VeedorConfig:
    return ctx.obj if isinstance(ctx.obj, VeedorConfig) else VeedorConfig.load()


def _workspace(config: VeedorConfig):  # noqa: ANN202
    from veedor.storage.json_store import JSONWorkspace

    return JSONWorkspace.open(config.data_file, config.defaults)


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run *coro*, turning domain errors into a red message and exit code 1."""
    try:
        return asyncio.run(coro)
    except VeedorError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _period(year: int | None, month: int | None) -> tuple[int, int]:
    from veedor.models.values import CalendarDate

    today = CalendarDate.today()
    return year or today.year, month or today.month


def _eur(value: Any) -> str:
    from veedor.models.values import MonetaryAmount

    return MonetaryAmount.of(value).format()


@app.command()
def version() -> None:
    """Show the installed version."""
    console.print(f"[bold]Veedor[/bold] v{__version__}")


@app.command()
def init(ctx: typer.Context) -> None:
    """Create the data file and fill it with demo data if it is empty."""
    from veedor.storage.seed import seed_if_empty

    config = _config(ctx)
    workspace = _workspace(config)
    summary = _run(seed_if_empty(workspace.transactions, workspace.categories, workspace.budgets))

    if summary.categories == 0:
        console.print(f"[dim]{config.data_file} already has data, nothing seeded[/dim]")
        return
    console.print(
        f"[green]✓[/green] Seeded {summary.categories} categories, "
        f"{summary.transactions} transactions and {summary.budgets} budgets "
        f"into [bold]{config.data_file}[/bold]"
    )


@app.command("import-csv")
def import_csv(
    ctx: typer.Context,
    file: str = typer.Argument(..., help="CSV file: fecha;descripcion;categoria;importe"),
    resolve: bool = typer.Option(
        True,
        "--resolve/--no-resolve",
        help="Match the categoria column against existing categories",
    ),
) -> None:
    """Import transactions from a CSV file, skipping duplicates."""
    from veedor.services.importer import ImportService

    config = _config(ctx)
    if not Path(file).exists():
        console.print(f"[red]Error: file not found: {file}[/red]")
        raise typer.Exit(1)

    workspace = _workspace(config)
    service = ImportService(workspace.transactions, workspace.categories)
    with console.status("[bold green]Importing...[/bold green]"):
        report = _run(service.import_file(file, encoding=config.csv.encoding, resolve_categories=resolve))

    table = Table(title="Import Summary")
    table.add_column("Result", style="bold")
    table.add_column("Count", justify="right")
    table.add_row("Imported", str(report.imported))
    table.add_row("Duplicates", str(report.duplicates))
    table.add_row("Errors", str(report.error_count))
    console.print(table)

    if report.errors:
        errors = Table(title="Rejected lines", show_lines=False)
        errors.add_column("Line", justify="right")
        errors.add_column("Problem", style="red")
        errors.add_column("Content", style="dim")
        for error in report.errors:
            errors.add_row(str(error.line_number), error.message, error.raw_line)
        console.print(errors)


@app.command("example-csv")
def example_csv(
    output: str = typer.Option(
        None,
        "--output",
        "-o",
        help="Write to this file instead of stdout",
    ),
) -> None:
    """Print (or save) a sample CSV in the import format."""
    from veedor.connectors.csv_connector import generate_example_csv

    content = generate_example_csv()
    if output is None:
        typer.echo(content, nl=False)
        return
    Path(output).write_text(content, encoding="utf-8")
    console.print(f"[green]✓[/green] Example saved to [bold]{output}[/bold]")


@app.command()
def summary(
    ctx: typer.Context,
    year: int = typer.Option(None, "--year", "-y", help="Year (default: current)"),
    month: int = typer.Option(None, "--month", "-m", min=1, max=12, help="Month 1-12 (default: current)"),
) -> None:
    """Monthly totals and the top-spending categories."""
    from veedor.analyzers import selectors

    config = _config(ctx)
    year, month = _period(year, month)
    snapshot = _run(_workspace(config).snapshot())
    totals = selectors.monthly_totals(snapshot, year, month)

    console.print(Panel.fit(
        f"[bold blue]💶 Veedor[/bold blue] — {month:02d}/{year}",
        subtitle=f"v{__version__}",
    ))

    table = Table(title="Monthly Totals", show_lines=True)
    table.add_column("Metric", style="bold")
    table.add_column("Amount", justify="right")
    table.add_row("Income", f"[green]{_eur(totals.income)}[/green]")
    table.add_row("Expenses", f"[red]{_eur(totals.expenses)}[/red]")
    savings_color = "green" if totals.savings >= 0 else "red"
    table.add_row("Savings", f"[{savings_color}]{_eur(totals.savings)}[/{savings_color}]")
    console.print(table)

    ranking = selectors.top_spending_categories(snapshot, year, month, config.top_categories_limit)
    if not ranking:
        console.print("[dim]No categorized expenses this month[/dim]")
        return

    top = Table(title="Top Spending Categories")
    top.add_column("#", justify="right")
    top.add_column("Category", style="bold cyan")
    top.add_column("Spent", justify="right")
    top.add_column("%", justify="right")
    for position, row in enumerate(ranking, 1):
        top.add_row(str(position), row.category_name, _eur(row.amount), f"{row.percentage:.2f}")
    console.print(top)


@app.command()
def budgets(
    ctx: typer.Context,
    year: int = typer.Option(None, "--year", "-y", help="Year (default: current)"),
    month: int = typer.Option(None, "--month", "-m", min=1, max=12, help="Month 1-12 (default: current)"),
) -> None:
    """Budget progress for a month."""
    from veedor.analyzers import selectors

    config = _config(ctx)
    year, month = _period(year, month)
    snapshot = _run(_workspace(config).snapshot())
    progress = selectors.budget_progress(
        snapshot,
        year,
        month,
        warn_at=config.budget.warn_percentage,
        danger_at=config.budget.danger_percentage,
    )
    if not progress:
        console.print("[dim]No budgets defined. Use [bold]veedor set-budget[/bold].[/dim]")
        return

    table = Table(title=f"Budgets {month:02d}/{year}")
    table.add_column("Category", style="bold cyan")
    table.add_column("Limit", justify="right")
    table.add_column("Spent", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Status")
    for row in progress:
        color = _STATUS_COLORS[row.status]
        table.add_row(
            row.category_name,
            _eur(row.limit),
            _eur(row.spent),
            _eur(row.remaining),
            f"{row.percentage:.2f}",
            f"[{color}]{row.status.value.upper()}[/{color}]",
        )
    console.print(table)


@app.command()
def categories(ctx: typer.Context) -> None:
    """List categories, sorted by name."""
    from veedor.analyzers import selectors

    snapshot = _run(_workspace(_config(ctx)).snapshot())

    table = Table(title="Categories")
    table.add_column("Name", style="bold cyan")
    table.add_column("Slug")
    table.add_column("Color")
    table.add_column("Budget")
    for category in selectors.available_categories(snapshot):
        budget = selectors.budget_by_category(snapshot, str(category.id))
        limit = _eur(budget.monthly_limit.value) if budget is not None else "—"
        table.add_row(
            category.name,
            category.slug,
            f"[{category.color_hex}]■[/{category.color_hex}] {category.color_hex}",
            limit,
        )
    console.print(table)


@app.command("add-category")
def add_category(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Category name"),
    color: str = typer.Argument(..., help="Colour as #RRGGBB"),
) -> None:
    """Create a category."""
    from veedor.models.financial import Category

    workspace = _workspace(_config(ctx))

    async def _add() -> Category:
        category = Category(name=name, color_hex=color)
        await workspace.categories.add(category)
        return category

    category = _run(_add())
    console.print(f"[green]✓[/green] Category [bold]{category.name}[/bold] ({category.slug}) created")


async def _find_category(workspace: Any, reference: str):  # noqa: ANN202
    from veedor.models.financial import slugify

    wanted = reference.strip()
    for category in await workspace.categories.find_all():
        if wanted.casefold() == category.name.casefold() or slugify(wanted) == category.slug:
            return category
    raise NotFoundError("Category", wanted)


@app.command("set-budget")
def set_budget(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="Category name or slug"),
    limit: str = typer.Argument(..., help="Monthly limit, e.g. 300 or 1.250,50"),
) -> None:
    """Create or change the monthly budget of a category."""
    from veedor.models.financial import Budget
    from veedor.models.values import MonetaryAmount

    workspace = _workspace(_config(ctx))

    async def _set() -> tuple[Budget, bool]:
        target = await _find_category(workspace, category)
        amount = MonetaryAmount.parse(limit)
        existing = await workspace.budgets.find_by_category(str(target.id))
        if existing is not None:
            return await workspace.budgets.update(existing.id, monthly_limit=amount), False
        budget = Budget(category_id=str(target.id), monthly_limit=amount)
        await workspace.budgets.add(budget)
        return budget, True

    budget, created = _run(_set())
    verb = "created" if created else "updated"
    console.print(f"[green]✓[/green] Budget {verb}: {category} → {budget.monthly_limit.format()}/month")


@app.command("add-transaction")
def add_transaction(
    ctx: typer.Context,
    date: str = typer.Argument(..., help="Date as dd/mm/yyyy"),
    description: str = typer.Argument(..., help="What the movement was"),
    amount: str = typer.Argument(..., help="Spanish format, negative for expenses (put -- before negative values)"),
    category: str = typer.Option(None, "--category", "-c", help="Category name or slug"),
    merchant: str = typer.Option(None, "--merchant", help="Merchant name"),
) -> None:
    """Record a single income or expense."""
    from veedor.models.financial import Transaction
    from veedor.models.values import CalendarDate, MonetaryAmount

    workspace = _workspace(_config(ctx))

    async def _add() -> Transaction:
        category_id = None
        if category:
            category_id = str((await _find_category(workspace, category)).id)
        transaction = Transaction(
            date=CalendarDate.parse(date),
            description=description,
            amount=MonetaryAmount.parse(amount),
            category_id=category_id,
            merchant=merchant,
        )
        await workspace.transactions.add(transaction)
        return transaction

    transaction = _run(_add())
    color = "green" if transaction.is_income else "red"
    console.print(
        f"[green]✓[/green] {transaction.date} {transaction.description} "
        f"[{color}]{transaction.amount.format()}[/{color}]"
    )


@app.command()
def export(
    ctx: typer.Context,
    format: str = typer.Option("csv", "--format", "-f", help="csv, json or md"),
    output: str = typer.Option(None, "--output", "-o", help="Output file (default: stdout)"),
    year: int = typer.Option(None, "--year", "-y", help="Report year for md (default: current)"),
    month: int = typer.Option(None, "--month", "-m", min=1, max=12, help="Report month for md"),
) -> None:
    """Export transactions (csv, json) or a monthly report (md)."""
    from veedor.exporters import export_json, export_transactions_csv, render_monthly_markdown

    config = _config(ctx)
    snapshot = _run(_workspace(config).snapshot())
    kind = format.lower()

    if kind == "csv":
        content = export_transactions_csv(
            snapshot.transactions, snapshot.categories, include_merchant=config.csv.export_merchant
        )
    elif kind == "json":
        content = export_json(snapshot.transactions, snapshot.categories)
    elif kind in ("md", "markdown"):
        year, month = _period(year, month)
        content = render_monthly_markdown(
            snapshot,
            year,
            month,
            top_limit=config.top_categories_limit,
            warn_at=config.budget.warn_percentage,
            danger_at=config.budget.danger_percentage,
        )
    else:
        console.print(f"[red]Error: unknown format '{format}'. Use csv, json or md[/red]")
        raise typer.Exit(1)

    if output is None:
        typer.echo(content)
        return
    Path(output).write_text(content, encoding="utf-8")
    console.print(f"[green]✓[/green] Exported to [bold]{output}[/bold]")


@app.command()
def settings(
    ctx: typer.Context,
    theme: str = typer.Option(None, "--theme", help="dark or light"),
    reset: bool = typer.Option(False, "--reset", help="Restore the default settings"),
) -> None:
    """Show or change display settings."""
    workspace = _workspace(_config(ctx))
    repo = workspace.settings

    if reset:
        current = _run(repo.reset())
    elif theme:
        current = _run(repo.update(theme=theme.lower()))
    else:
        current = _run(repo.get())

    table = Table(title="Settings")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("theme", current.theme.value)
    table.add_row("locale", current.locale.value)
    console.print(table)


if __name__ == "__main__":
    app()
