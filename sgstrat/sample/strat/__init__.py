from .strat import (
    SamplingReport,
    strat,
)
