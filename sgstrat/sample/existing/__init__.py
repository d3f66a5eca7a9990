from .existing import existing
