"""Storage — repository ports and the JSON-file adapter."""
