"""Aggressiveness policy — turns the 1-10 dial into concrete thresholds.

The server-wide level (or a member's active override) is interpolated
between a permissive level-1 profile and a maximum level-10 profile.
Every numeric threshold tightens as the level rises.
"""
