"""bondcalc API middleware."""
