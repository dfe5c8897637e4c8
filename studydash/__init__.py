"""studydash: recurring items for a student dashboard."""
