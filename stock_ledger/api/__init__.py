"""HTTP layer for the stock ledger: database, storage adapters and routes."""
