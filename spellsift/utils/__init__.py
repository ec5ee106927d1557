"""Utility helpers for spellsift."""
