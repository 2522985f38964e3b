"""
AucEngine

A descending-price (Dutch) auction ledger:
- Linear price decay computed on demand
- Atomic purchase settlement with protocol fee and refund
- Append-only auction table and audit records
- SQLite persistence and replay
"""
