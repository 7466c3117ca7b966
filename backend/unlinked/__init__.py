"""UnLinked social backend."""
