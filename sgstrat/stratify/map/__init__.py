from .map_stratifications import map
