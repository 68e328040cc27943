"""Flask blueprints: identity sync, session tracking and the dashboard."""
