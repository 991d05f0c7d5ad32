"""Shared utilities: exceptions, math helpers and date conversion."""
