"""Business health assessments across the eight business engines."""
