"""Core HR module — employee directory and ledger provisioning."""
