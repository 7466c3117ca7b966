"""Connection requests, the connection graph and its repair."""
