"""Runtime wiring: shared context and network reachability."""
