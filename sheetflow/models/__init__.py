"""Item, option and payload models."""
