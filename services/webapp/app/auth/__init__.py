"""Shared-password session authentication."""
