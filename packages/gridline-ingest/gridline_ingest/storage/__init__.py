"""Database read and write operations."""
