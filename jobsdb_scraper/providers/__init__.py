"""Job board browser-automation collaborators and other external adapters."""
