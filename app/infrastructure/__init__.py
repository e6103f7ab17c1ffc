"""Infrastructure — document store sessions, keyed locking, structured logging."""
