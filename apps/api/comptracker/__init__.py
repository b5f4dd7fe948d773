"""Compliance tracker API: requirements, period-scoped document checks, notifications."""
