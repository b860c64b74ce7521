"""Marketing-automation workflow studio."""
