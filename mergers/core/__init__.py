"""Service plumbing shared by entry points."""
