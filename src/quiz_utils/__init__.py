"""Terminal quiz utilities."""
