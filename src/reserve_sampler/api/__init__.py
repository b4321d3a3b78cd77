"""Read-only JSON API over persisted reserve snapshots."""
