"""Shared utilities: filesystem helpers and logging setup."""
