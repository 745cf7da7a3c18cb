"""
Data ingestion for actual prices and externally generated predictions.

Modules
-------
yahoo_client  Yahoo Finance v8 chart endpoint (httpx), rate limited.
csv_import    Validating CSV readers for predictions and actual prices.
"""
