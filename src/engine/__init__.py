"""
Game engine: grid, ball physics, rendering and the fixed-rate scheduler
"""
