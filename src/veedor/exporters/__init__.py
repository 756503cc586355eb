"""Exporters package — convert transactions and reports to output formats."""
from veedor.exporters.csv_exporter import export_transactions_csv
from veedor.exporters.json_exporter import export_json
from veedor.exporters.markdown import render_monthly_markdown

__all__ = ["export_json", "export_transactions_csv", "render_monthly_markdown"]
