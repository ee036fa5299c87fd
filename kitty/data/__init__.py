"""Quote sources, price resolution, and position file loading."""
