"""Builds the price email: a greeting, one sentence per known price, and the full table."""

from decimal import Decimal
from html import escape

from pricealert.domain.models.lookup import PriceMatrix
from pricealert.domain.models.report import NOT_AVAILABLE, Cell, ReportBody, ReportRow

GREETING = "Hello investor! 🚀"


def format_cell(cell: Cell) -> str:
    """Fixed-point with thousands separators; tiny prices never turn into ``1.234E-8``."""
    if isinstance(cell, Decimal):
        return f"{cell:,f}"
    return cell


def format_plain(cell: Cell) -> str:
    """Fixed-point without separators, for machine-readable output."""
    if isinstance(cell, Decimal):
        return format(cell, "f")
    return cell


class NotificationRenderer:
    """Rows follow ``crypto_ids`` and columns follow ``currency_codes`` exactly as requested.

    Every requested cross gets a cell; missing prices become ``N/A``.
    """

    def render(self, matrix: PriceMatrix, crypto_ids: list[str], currency_codes: list[str]) -> ReportBody:
        rows = []
        for crypto_id in crypto_ids:
            quotes = matrix.get(crypto_id, {})
            cells: list[Cell] = [quotes.get(code, NOT_AVAILABLE) for code in currency_codes]
            rows.append(ReportRow(crypto_id=crypto_id, cells=cells))

        return ReportBody(
            subject=f"Crypto Price: {', '.join(crypto_ids)}",
            crypto_ids=list(crypto_ids),
            currency_codes=list(currency_codes),
            rows=rows,
            text=self._render_text(rows, currency_codes),
            html=self._render_html(rows, currency_codes),
        )

    def _render_text(self, rows: list[ReportRow], currency_codes: list[str]) -> str:
        sentences = [
            f"The current price of {row.crypto_id} is {format_cell(cell)} {code.upper()}."
            for row in rows
            for code, cell in zip(currency_codes, row.cells)
            if isinstance(cell, Decimal)
        ]
        if not sentences:
            sentences = ["No prices are currently available for the requested pairs."]

        header = ["Crypto"] + [code.upper() for code in currency_codes]
        table = [header] + [[row.crypto_id] + [format_cell(c) for c in row.cells] for row in rows]
        widths = [max(len(line[i]) for line in table) for i in range(len(header))]
        table_lines = [" | ".join(value.ljust(width) for value, width in zip(line, widths)).rstrip() for line in table]

        return "\n".join([GREETING, "", *sentences, "", *table_lines]) + "\n"

    def _render_html(self, rows: list[ReportRow], currency_codes: list[str]) -> str:
        head = "".join(f"<th>{escape(code.upper())}</th>" for code in currency_codes)
        body = "".join(
            "<tr><td>{}</td>{}</tr>".format(
                escape(row.crypto_id),
                "".join(f"<td>{escape(format_cell(cell))}</td>" for cell in row.cells),
            )
            for row in rows
        )
        return (
            f"<p>{escape(GREETING)}</p>"
            f"<table><thead><tr><th>Crypto</th>{head}</tr></thead><tbody>{body}</tbody></table>"
        )
