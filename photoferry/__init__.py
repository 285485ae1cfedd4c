"""Asset models, metadata readers, sidecars, filters, an event journal and Docker helpers for moving photo libraries to a photo server."""

__version__ = "0.1.0"