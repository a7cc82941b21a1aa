"""Coaching sessions and action items."""
