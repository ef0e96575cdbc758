"""Domain Events emitted by the design API client."""
