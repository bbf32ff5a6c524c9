"""GitHub organization analytics API."""
