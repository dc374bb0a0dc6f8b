"""Infrastructure adapters implementing the core protocols."""
