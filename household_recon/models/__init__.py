"""
models/ - Domain Layer
======================
Plain dataclasses for expenses, invoices and statement transactions.
No database or service dependencies.
"""
