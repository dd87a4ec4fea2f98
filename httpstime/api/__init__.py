"""HTTP and session routes."""
