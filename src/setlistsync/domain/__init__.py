"""Domain layer: exceptions, DTOs, ports and pure rules. No I/O in here."""
