"""Platform utilities: clock, secrets."""
