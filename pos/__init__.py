"""Restaurant point-of-sale backend."""
