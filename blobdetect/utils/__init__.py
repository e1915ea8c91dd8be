"""Small shared helpers (logging, provenance)."""
