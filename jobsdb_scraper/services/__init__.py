"""Page discovery services: URL helpers, single-page probes, last-page search."""
