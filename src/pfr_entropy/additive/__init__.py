"""Ruzsa distance, doubling and the tau functional over finite abelian groups."""
