"""bondcalc HTTP API."""
