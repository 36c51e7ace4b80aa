"""Medical-gas synoptics backend."""
