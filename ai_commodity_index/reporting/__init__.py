"""
Read side: cached dashboard queries, export helpers and CLI formatters.

Modules
-------
dashboard   DashboardService (rankings, latest index, history, Fear/Greed, stats).
export      CSV/JSON writers and flat-row adapters.
formatters  Plain-text tables for ``typer.echo()``.
"""
