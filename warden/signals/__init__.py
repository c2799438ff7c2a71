"""Member signals — raw provider payloads normalized into bounded records."""
