"""Core building blocks: retrying actions, expectations and process supervision."""
