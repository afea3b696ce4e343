"""Board core: canonical schema, state machine, snapshots and reconciliation."""
