"""
Markdown monthly report.

Totals, the top-spending categories and budget progress for one month,
suitable for GitHub, Notion, or any Markdown viewer.
"""

from __future__ import annotations

from decimal import Decimal

from veedor.analyzers import selectors
from veedor.models.financial import FinancialSnapshot
from veedor.models.report import BudgetStatus
from veedor.models.values import CalendarDate, MonetaryAmount

_MONTHS = (
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
)


def _eur(value: Decimal) -> str:
    return MonetaryAmount.of(value).format()


def _pct(value: Decimal) -> str:
    return f"{value:.2f}".replace(".", ",") + " %"


def render_monthly_markdown(
    snapshot: FinancialSnapshot,
    year: int,
    month: int,
    top_limit: int = 5,
    warn_at: Decimal = selectors.DEFAULT_WARN_AT,
    danger_at: Decimal = selectors.DEFAULT_DANGER_AT,
) -> str:
    """Render the month's report as Markdown."""
    lines: list[str] = []

    lines.append(f"# Veedor — {_MONTHS[month - 1]} {year}")
    lines.append("")
    lines.append(f"*Generado: {CalendarDate.today().format_long()}*")
    lines.append("")

    # Totals
    totals = selectors.monthly_totals(snapshot, year, month)
    lines.append("## 📊 Resumen")
    lines.append("")
    lines.append("| Concepto | Importe |")
    lines.append("|----------|---------|")
    lines.append(f"| **Ingresos** | {_eur(totals.income)} |")
    lines.append(f"| **Gastos** | {_eur(totals.expenses)} |")
    lines.append(f"| **Ahorro** | {_eur(totals.savings)} |")
    lines.append("")

    # Top categories
    lines.append("## 🏷️ Categorías con más gasto")
    lines.append("")
    ranking = selectors.top_spending_categories(snapshot, year, month, top_limit)
    if ranking:
        lines.append("| # | Categoría | Gastado | % |")
        lines.append("|---|-----------|---------|---|")
        for position, row in enumerate(ranking, start=1):
            lines.append(f"| {position} | {row.category_name} | {_eur(row.amount)} | {_pct(row.percentage)} |")
    else:
        lines.append("*Sin gastos categorizados este mes.*")
    lines.append("")

    # Budgets
    status_emoji = {
        BudgetStatus.OK: "🟢",
        BudgetStatus.WARN: "🟡",
        BudgetStatus.DANGER: "🔴",
    }
    lines.append("## 💰 Presupuestos")
    lines.append("")
    progress = selectors.budget_progress(snapshot, year, month, warn_at, danger_at)
    if progress:
        lines.append("| Estado | Categoría | Límite | Gastado | Restante | % |")
        lines.append("|--------|-----------|--------|---------|----------|---|")
        for row in progress:
            lines.append(
                f"| {status_emoji[row.status]} | {row.category_name} | {_eur(row.limit)} "
                f"| {_eur(row.spent)} | {_eur(row.remaining)} | {_pct(row.percentage)} |"
            )
    else:
        lines.append("*No hay presupuestos definidos.*")
    lines.append("")

    lines.append("---")
    lines.append("*Generated by Veedor*")
    return "\n".join(lines)
