"""Infrastructure adapters: logging, database sessions, realtime, scheduling."""
