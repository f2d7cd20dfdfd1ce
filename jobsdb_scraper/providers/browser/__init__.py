"""Browser-automation adapters implementing :class:`IBrowserSession`."""
