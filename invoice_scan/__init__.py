"""
Invoice Scan backend application.

A FastAPI service that uploads PDF invoices, extracts structured data
from them with AI (OpenAI), and stores the reviewed records.
"""

__version__ = "1.0.0"
