"""Jinja templates rendering the dashboard view models."""
