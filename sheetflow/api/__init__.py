"""Cloud account REST client."""
