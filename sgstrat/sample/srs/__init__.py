from .srs import srs
