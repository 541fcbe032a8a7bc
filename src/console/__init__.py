"""Console state layer: the reactive store and its state containers."""
