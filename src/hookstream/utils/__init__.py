"""Small pure helpers shared across services."""
