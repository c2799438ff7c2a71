"""Server risk — community-level roll-up of member results and event counts."""
