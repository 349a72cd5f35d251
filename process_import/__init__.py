"""Bulk importer for legal-process spreadsheets (XLSX/XLS/CSV -> PostgreSQL)."""

__version__ = "0.1.0"
