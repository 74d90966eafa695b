"""Domain core: scheduling logic free of persistence concerns."""
