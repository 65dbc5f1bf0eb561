"""Platform adapters (subprocess execution, file writes)."""
