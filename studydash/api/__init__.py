"""HTTP API for studydash."""
