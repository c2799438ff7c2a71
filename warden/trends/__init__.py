"""Threat trends — event-frequency statistics and near-future threat probability."""
