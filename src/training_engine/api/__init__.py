"""HTTP API for the training decision engine."""
