"""bondcalc API routes."""
