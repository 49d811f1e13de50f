"""Interactive bulk archiving of stale GitHub repositories."""
