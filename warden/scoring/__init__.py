"""Suspicion scoring — weighted, explainable per-member threat scores."""
