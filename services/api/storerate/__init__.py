"""Store rating platform API."""
