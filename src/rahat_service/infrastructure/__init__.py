"""Infrastructure adapters: database, persistence, identity."""
