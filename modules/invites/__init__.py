"""Invite tracking for member-join attribution."""
