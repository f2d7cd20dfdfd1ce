"""HTTP API exposed by worker nodes to the scrape coordinator."""
