"""Game rule tables: wound severities, hit locations, weapons, ammunition and encumbrance."""
