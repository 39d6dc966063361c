"""Domain apps of the HostBook platform."""
