#!/usr/bin/env python

from scoregrid.utils.music import (
    RESOLUTION,
    DURATION_TYPES,
    ALTER_SIGNS,
    KEY_SPECS,
    InvalidTicksError,
    simplify_ticks,
    ticks_from_duration,
    tick_multiplier,
    estimate_duration_code,
    fifths_to_key_name,
    note_array_from_measure,
)

from .misc import PathLike
