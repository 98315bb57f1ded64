"""Event model and the in-memory, append-only event store."""
