"""Reminder persistence and API."""
