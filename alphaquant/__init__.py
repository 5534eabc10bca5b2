"""
AlphaQuant

Alpha factor research toolkit.
"""
