"""Palette and color math (luminance, nearest color, hex parsing)."""
