"""Read-side financial reports built from the ledger and WIP snapshots."""
