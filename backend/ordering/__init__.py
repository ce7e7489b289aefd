"""
Ordering engine: order and item lifecycle for venue tables and stalls.
"""
