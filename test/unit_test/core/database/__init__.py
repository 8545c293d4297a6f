"""Unit tests for the schooladmin.core.database package."""
