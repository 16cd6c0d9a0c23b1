"""Database engine, session and schema bootstrap."""
