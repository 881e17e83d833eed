"""Business logic services for recipes, search, favorites and profiles."""
