#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
This module contains music related utilities: tick arithmetic, symbolic
duration codes, key signature names and note arrays.
"""
from collections import OrderedDict
from fractions import Fraction

import numpy as np

__all__ = [
    "RESOLUTION",
    "DURATION_TYPES",
    "ALTER_SIGNS",
    "KEY_SPECS",
    "InvalidTicksError",
    "simplify_ticks",
    "ticks_from_duration",
    "tick_multiplier",
    "estimate_duration_code",
    "fifths_to_key_name",
    "note_array_from_measure",
]

#: Number of ticks in a whole note
RESOLUTION = 16384

DURATION_TYPES = {
    "whole": "1",
    "half": "2",
    "quarter": "4",
    "eighth": "8",
    "16th": "16",
    "32nd": "32",
    "64th": "64",
    "128th": "128",
    "256th": "256",
}

ALTER_SIGNS = {1: "#", 2: "##", -1: "b", -2: "bb"}

# key name -> (accidental, number of accidentals). Major keys precede
# their relative minor keys, so that lookups by number of accidentals
# alone yield the major key.
KEY_SPECS = OrderedDict(
    [
        ("C", (None, 0)),
        ("Am", (None, 0)),
        ("F", ("b", 1)),
        ("Dm", ("b", 1)),
        ("Bb", ("b", 2)),
        ("Gm", ("b", 2)),
        ("Eb", ("b", 3)),
        ("Cm", ("b", 3)),
        ("Ab", ("b", 4)),
        ("Fm", ("b", 4)),
        ("Db", ("b", 5)),
        ("Bbm", ("b", 5)),
        ("Gb", ("b", 6)),
        ("Ebm", ("b", 6)),
        ("Cb", ("b", 7)),
        ("Abm", ("b", 7)),
        ("G", ("#", 1)),
        ("Em", ("#", 1)),
        ("D", ("#", 2)),
        ("Bm", ("#", 2)),
        ("A", ("#", 3)),
        ("F#m", ("#", 3)),
        ("E", ("#", 4)),
        ("C#m", ("#", 4)),
        ("B", ("#", 5)),
        ("G#m", ("#", 5)),
        ("F#", ("#", 6)),
        ("D#m", ("#", 6)),
        ("C#", ("#", 7)),
        ("A#m", ("#", 7)),
    ]
)


class InvalidTicksError(ValueError):
    pass


def simplify_ticks(ticks):
    """Reduce a tick value to lowest terms, returning a plain integer
    when the denominator is 1.

    Parameters
    ----------
    ticks : Fraction or int

    Returns
    -------
    int or Fraction

    """
    ticks = Fraction(ticks)
    if ticks.denominator == 1:
        return ticks.numerator
    return ticks


def ticks_from_duration(duration, divisions, resolution=RESOLUTION):
    """Convert a MusicXML duration into ticks.

    Parameters
    ----------
    duration : int
        The value of a <duration> element
    divisions : int
        The number of duration units per quarter note in force
    resolution : int, optional
        Number of ticks per whole note. Defaults to `RESOLUTION`.

    Returns
    -------
    int or Fraction
        The exact number of ticks, as an integer when possible

    Raises
    ------
    InvalidTicksError
        When either value is missing, not an integer, or `divisions`
        is zero

    Examples
    --------
    >>> ticks_from_duration(4, 4)
    4096
    >>> ticks_from_duration(1, 3)
    Fraction(4096, 3)

    """
    if not isinstance(duration, int) or not isinstance(divisions, int):
        raise InvalidTicksError(
            "Cannot compute ticks from duration {!r} and divisions {!r}".format(
                duration, divisions
            )
        )
    if divisions == 0:
        raise InvalidTicksError("Divisions must be non-zero")
    return simplify_ticks(Fraction(resolution // 4 * duration, divisions))


def tick_multiplier(actual_notes, normal_notes):
    """The exact duration scaling of a time modification, e.g. 2/3
    for triplets.

    """
    return Fraction(normal_notes, actual_notes)


def estimate_duration_code(ticks, multiplier=Fraction(1, 1), max_dots=2):
    """Estimate the duration code of a note from its duration in ticks,
    for notes that lack a <type> element (such as whole measure rests).

    Parameters
    ----------
    ticks : int or Fraction
        Duration of the note in ticks
    multiplier : Fraction, optional
        Tuplet scaling applied to the nominal duration. Defaults to 1.
    max_dots : int, optional
        Maximum number of dots to consider. Defaults to 2.

    Returns
    -------
    str or None
        Duration code such as "2d", or None if the duration cannot be
        expressed as a (dotted) note value

    Examples
    --------
    >>> estimate_duration_code(RESOLUTION * 3 // 4)
    '2d'

    """
    if not ticks:
        return None
    nominal = Fraction(ticks) / multiplier
    for code in DURATION_TYPES.values():
        base = Fraction(RESOLUTION, int(code))
        for dots in range(max_dots + 1):
            if base * (2 - Fraction(1, 2 ** dots)) == nominal:
                return code + "d" * dots
    return None


def fifths_to_key_name(fifths, key_specs=KEY_SPECS, mode=None):
    """Return the name of the key with `fifths` sharps (positive) or
    flats (negative).

    Parameters
    ----------
    fifths : int
        Number of fifths
    key_specs : mapping, optional
        Ordered mapping from key names to (accidental, count) pairs.
        Defaults to `KEY_SPECS`.
    mode : {'major', 'minor', None}, optional
        When given, only keys of that mode are considered. Minor key
        names end in 'm'.

    Returns
    -------
    str or None
        The first matching key name, or None if no key matches

    Examples
    --------
    >>> fifths_to_key_name(-2)
    'Bb'
    >>> fifths_to_key_name(3, mode='minor')
    'F#m'
    >>> fifths_to_key_name(9) is None
    True

    """
    for name, spec in key_specs.items():
        try:
            acc, num = spec
        except (TypeError, ValueError):
            continue

        if mode == "minor" and not name.endswith("m"):
            continue
        if mode == "major" and name.endswith("m"):
            continue

        if fifths < 0 and acc == "b" and num == abs(fifths):
            return name
        if fifths >= 0 and acc != "b" and num == fifths:
            return name

    return None


def note_array_from_measure(measure):
    """Create a structured array with the note events of a measure.

    Onsets are accumulated per voice from the tick durations of the
    preceding events of that voice; grace notes take no time.

    Parameters
    ----------
    measure : scoregrid.score.Measure
        A materialized measure

    Returns
    -------
    np.ndarray
        Structured array with fields

        * 'part': index of the part
        * 'voice': index of the (compacted) voice
        * 'staff': 0-based staff of the event
        * 'onset_tick': onset in ticks from the start of the measure
        * 'duration_tick': duration in ticks
        * 'key': the keys of the event, joined by spaces
        * 'is_rest': whether the event is a rest

    """
    fields = [
        ("part", "i4"),
        ("voice", "i4"),
        ("staff", "i4"),
        ("onset_tick", "f8"),
        ("duration_tick", "f8"),
        ("key", "U64"),
        ("is_rest", "?"),
    ]
    rows = []
    for p, part in enumerate(measure.parts):
        for v, voice in enumerate(part.voices):
            onset = Fraction(0)
            for note in voice.notes:
                duration = Fraction(note.ticks or 0)
                rows.append(
                    (
                        p,
                        v,
                        note.staff,
                        float(onset),
                        float(duration),
                        " ".join(note.keys),
                        note.rest,
                    )
                )
                onset += duration

    return np.array(rows, dtype=fields)
