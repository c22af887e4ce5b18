"""HTTP API for SnipShare."""
