"""Infrastructure layer: stubs, production adapters and observability."""
