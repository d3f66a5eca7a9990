from .breaks import breaks
