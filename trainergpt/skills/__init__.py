"""Training analytics shared by every tool backend."""
