"""OAuth2 bridge between local tooling and the Converty partner API."""
