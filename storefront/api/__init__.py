"""HTTP access layer for the storage core."""
