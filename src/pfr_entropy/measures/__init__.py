"""Entropy, kernel and divergence engines."""
