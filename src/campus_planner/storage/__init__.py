"""SQLite key/value blob store and the TaskStore persistence adapter."""
