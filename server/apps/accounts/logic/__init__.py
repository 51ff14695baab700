"""Business logic layer for accounts app: login sessions and cleanup."""
