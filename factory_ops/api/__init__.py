"""HTTP and WebSocket surface of the factory operations service."""
