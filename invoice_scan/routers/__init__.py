"""
Routers package for FastAPI endpoints.

Organized by domain:
- upload: PDF upload into the file cache
- extract: AI extraction of uploaded files
- invoices: Invoice CRUD and search
- files: Uploaded file retrieval
"""

from . import extract, files, invoices, upload

__all__ = ["extract", "files", "invoices", "upload"]
