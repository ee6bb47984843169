"""HTTP routers for the relay service."""
