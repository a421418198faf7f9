"""Read-only query functions grouped by table."""
