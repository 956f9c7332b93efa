"""Rules resolution core for a tiered d20 tabletop system.

Pure functions and resolvers that turn dice, character records and
settings into outcomes plus mutation lists. Nothing here touches storage.
"""

__version__ = "0.1.0"
