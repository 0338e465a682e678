"""HTTP API for ClipCheck."""
