"""Strategy wrapper package parsing."""
