"""
PDF Field Extraction Backend Application.

A FastAPI service that extracts a configurable set of fields from PDF
documents using an OpenAI model, with an upload queue, result table and
xlsx/JSON/CSV export.
"""

__version__ = "1.0.0"
