"""Businesses, team membership and per-business access rules."""
