"""
Models package for the typing dashboard.

Pydantic models for users, typing sessions, daily summaries and user stats,
plus the managers that read and write them through DatabaseManager.
"""
