"""
Utility helpers for corrmath.
"""
