"""
Services package for the invoice scan application.

Contains:
- file_cache: in-process holder for uploaded PDF bytes
- invoice_store: SQLAlchemy-backed invoice persistence and search
- extraction: OpenAI integration for invoice data extraction
- normalization: amount/date normalization of extracted data
"""
