"""
ComboForge.

Combo discovery and deck assembly for Magic: The Gathering card pools.
"""
