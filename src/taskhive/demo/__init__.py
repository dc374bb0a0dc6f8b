"""Demo mode support."""
