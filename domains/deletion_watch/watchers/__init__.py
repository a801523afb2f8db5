"""Watch source adapters."""
