"""SQLite storage, CRUD and configuration for the embedding store."""
