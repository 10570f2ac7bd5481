"""HTTP surface for the application host."""
