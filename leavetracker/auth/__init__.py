"""Auth module — bearer token issue and verification."""
