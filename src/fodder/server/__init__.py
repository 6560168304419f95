"""HTTP server exposing the food config session and replication channel."""
