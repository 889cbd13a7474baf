# -*- coding: utf-8 -*-


"""This module defines the normalized, timewise representation of a
score that is handed to a layout engine. A score is delivered one
`Measure` at a time; a measure holds one `MeasurePart` per part, each
with its staves (and their clefs) and a dense list of `Voice` objects
containing `NoteEvent` instances.

The module also defines the attribute bookkeeping used while
ingesting a MusicXML document: immutable `AttributeSnapshot` records,
the `ClefSetting` variant, and the append-only `AttributeLog` that
resolves the effective attributes of a part at a given measure.

"""

from collections import namedtuple
from copy import copy
from fractions import Fraction
from typing import Dict, List

from scoregrid.utils.music import fifths_to_key_name

__all__ = [
    "TimeSignature",
    "Tuplet",
    "ClefSetting",
    "AttributeSnapshot",
    "AttributeLog",
    "NoteEvent",
    "Voice",
    "Stave",
    "MeasurePart",
    "Measure",
    "compact_voices",
]

TimeSignature = namedtuple("TimeSignature", ["beats", "beat_type"])
Tuplet = namedtuple("Tuplet", ["actual_notes", "normal_notes"])


class ClefSetting(object):
    """The clef of a part, either a single clef for the whole part
    (scalar) or one clef per staff.

    Parameters
    ----------
    clef : {'treble', 'bass', None}, optional
        The clef applying to every staff of the part. Only used when
        `per_staff` is None.
    per_staff : sequence, optional
        Clefs indexed by (0-based) staff number. Entries may be None.

    Attributes
    ----------
    clef : str or None
        See parameters
    per_staff : tuple or None
        See parameters

    """

    __slots__ = ("clef", "per_staff")

    def __init__(self, clef=None, per_staff=None):
        object.__setattr__(self, "clef", None if per_staff is not None else clef)
        object.__setattr__(
            self, "per_staff", None if per_staff is None else tuple(per_staff)
        )

    def __setattr__(self, name, value):
        raise AttributeError("ClefSetting objects are immutable")

    @classmethod
    def scalar(cls, clef):
        return cls(clef=clef)

    @classmethod
    def staffwise(cls, clefs):
        return cls(per_staff=clefs)

    @property
    def is_per_staff(self):
        return self.per_staff is not None

    def for_staff(self, staff):
        """Return the clef that applies to `staff` (0-based).

        Parameters
        ----------
        staff : int
            The staff index

        Returns
        -------
        str or None
            The clef name, or None when no clef is known for the staff

        """
        if self.per_staff is None:
            return self.clef
        if 0 <= staff < len(self.per_staff):
            return self.per_staff[staff]
        return None

    def __eq__(self, other):
        if not isinstance(other, ClefSetting):
            return NotImplemented
        return self.clef == other.clef and self.per_staff == other.per_staff

    def __hash__(self):
        return hash((self.clef, self.per_staff))

    def __repr__(self):
        if self.is_per_staff:
            return "ClefSetting(per_staff={!r})".format(list(self.per_staff))
        return "ClefSetting({!r})".format(self.clef)


_ATTRIBUTE_FIELDS = ("divisions", "fifths", "mode", "time", "clef")


class AttributeSnapshot(
    namedtuple("AttributeSnapshot", _ATTRIBUTE_FIELDS, defaults=(None,) * 5)
):
    """The attributes declared by one part in one measure. Fields that
    were not declared are None.

    Parameters
    ----------
    divisions : int, optional
        Number of duration units per quarter note
    fifths : int, optional
        Number of sharps (positive) or flats (negative) of the key
    mode : str, optional
        Mode of the key ('major', 'minor', ...)
    time : TimeSignature, optional
        The time signature
    clef : ClefSetting, optional
        The clef(s) of the part

    """

    __slots__ = ()

    def merge(self, other):
        """Return a snapshot where the fields set in `other` override
        the fields of this snapshot.

        """
        updates = {f: v for f, v in zip(self._fields, other) if v is not None}
        return self._replace(**updates)

    @property
    def key_name(self):
        if self.fifths is None:
            return None
        return fifths_to_key_name(self.fifths, mode=self.mode)


class AttributeLog(object):
    """Append-only table of attribute snapshots keyed by (measure,
    part).

    Snapshots are never revised once recorded. The effective
    attributes of a part at measure `m` are obtained by merging the
    snapshots of measures 0..m of that part in measure order.

    """

    def __init__(self):
        self._snapshots = {}

    def __len__(self):
        return len(self._snapshots)

    def __contains__(self, key):
        return key in self._snapshots

    def record(self, measure, part, snapshot):
        key = (measure, part)
        if key in self._snapshots:
            raise KeyError(
                "Attributes of measure {} part {} already recorded".format(
                    measure, part
                )
            )
        self._snapshots[key] = snapshot

    def get(self, measure, part):
        return self._snapshots.get((measure, part))

    def effective(self, measure, part):
        """Return the attributes in force for `part` at `measure`.

        Parameters
        ----------
        measure : int
            Measure index (0-based)
        part : int
            Part index (0-based)

        Returns
        -------
        AttributeSnapshot
            Merged snapshot; fields never declared are None

        """
        attrs = AttributeSnapshot()
        for m in range(measure + 1):
            snapshot = self._snapshots.get((m, part))
            if snapshot is not None:
                attrs = attrs.merge(snapshot)
        return attrs


class NoteEvent(object):
    """A decoded note, rest or chord.

    NoteEvent instances are not modified after construction; chord
    tones are added by `with_key`, which returns a new event.

    Parameters
    ----------
    keys : sequence of str
        Pitch keys of the form "STEP(ACC)/OCTAVE", e.g. "C#/4"
    duration : str or None
        Duration code, e.g. "4", "8d", "2r", "4dr"
    ticks : int, Fraction or None
        Exact duration in ticks (see `scoregrid.utils.music.RESOLUTION`)
    rest : bool, optional
        Whether the event is a rest
    chord : bool, optional
        Whether the event continues the chord of the previous note
    tick_multiplier : Fraction, optional
        Tuplet scaling of the nominal duration. Defaults to 1.
    tuplet : Tuplet, optional
        (actual_notes, normal_notes) of the time modification
    tie : {'begin', 'continue', 'end', None}
    beam : {'begin', 'continue', 'end', None}
    stem_direction : {1, -1, None}
    voice : int, optional
        The voice number as encoded in the document. Defaults to 0.
    staff : int, optional
        The (0-based) staff of the event. Defaults to 0.
    grace : bool, optional
        Whether the event is a grace note

    """

    __slots__ = (
        "keys",
        "duration",
        "ticks",
        "rest",
        "chord",
        "tick_multiplier",
        "tuplet",
        "tie",
        "beam",
        "stem_direction",
        "voice",
        "staff",
        "grace",
    )

    def __init__(
        self,
        keys,
        duration,
        ticks,
        rest=False,
        chord=False,
        tick_multiplier=Fraction(1, 1),
        tuplet=None,
        tie=None,
        beam=None,
        stem_direction=None,
        voice=0,
        staff=0,
        grace=False,
    ):
        self.keys = tuple(keys)
        self.duration = duration
        self.ticks = ticks
        self.rest = rest
        self.chord = chord
        self.tick_multiplier = tick_multiplier
        self.tuplet = tuplet
        self.tie = tie
        self.beam = beam
        self.stem_direction = stem_direction
        self.voice = voice
        self.staff = staff
        self.grace = grace

    def with_key(self, key):
        """Return a copy of this event with `key` added to its keys."""
        event = copy(self)
        event.keys = self.keys + (key,)
        return event

    def __eq__(self, other):
        if not isinstance(other, NoteEvent):
            return NotImplemented
        return all(getattr(self, a) == getattr(other, a) for a in self.__slots__)

    def __repr__(self):
        return "NoteEvent(keys={}, duration={!r}, ticks={}, voice={}, staff={})".format(
            list(self.keys), self.duration, self.ticks, self.voice, self.staff
        )


class Voice(object):
    """A sequence of note events of a single voice in one measure and
    part.

    Parameters
    ----------
    notes : list of NoteEvent, optional
    stave : int, optional
        The staff the voice is drawn on, taken from its first note

    """

    def __init__(self, notes=None, stave=None):
        self.notes = []
        self.stave = stave
        for note in notes or []:
            self.add_note(note)

    def __len__(self):
        return len(self.notes)

    def add_note(self, note):
        if not self.notes and self.stave is None:
            self.stave = note.staff
        self.notes.append(note)

    def add_chord_key(self, key):
        """Add `key` to the last note of the voice.

        Raises
        ------
        IndexError
            When the voice has no notes yet

        """
        self.notes[-1] = self.notes[-1].with_key(key)

    def __repr__(self):
        return "Voice(stave={}, notes={})".format(self.stave, self.notes)


class Stave(object):
    def __init__(self, clef=None):
        self.clef = clef

    def __repr__(self):
        return "Stave(clef={!r})".format(self.clef)


class MeasurePart(object):
    """The content of one part in one measure.

    Parameters
    ----------
    time : TimeSignature, optional
    clef : str, optional
        Clef used for staves that are not set explicitly
    key : str, optional
        Key signature name, e.g. 'Eb'
    part_id : str, optional
        The id of the part in the source document

    Attributes
    ----------
    staves : list of Stave
    voices : list of Voice

    """

    def __init__(self, time=None, clef=None, key=None, part_id=None):
        self.time = time
        self.clef = clef
        self.key = key
        self.part_id = part_id
        self.staves = [Stave(clef)]
        self.voices = [Voice()]

    def get_number_of_staves(self):
        return len(self.staves)

    def set_number_of_staves(self, num_staves):
        if num_staves < len(self.staves):
            del self.staves[num_staves:]
        while len(self.staves) < num_staves:
            self.staves.append(Stave(self.clef))

    def get_stave(self, stave):
        return self.staves[stave]

    def set_stave(self, stave, clef=None):
        self.staves[stave] = Stave(clef)

    def get_number_of_voices(self):
        return len(self.voices)

    def set_number_of_voices(self, num_voices):
        if num_voices < len(self.voices):
            del self.voices[num_voices:]
        while len(self.voices) < num_voices:
            self.voices.append(Voice())

    def get_voice(self, voice):
        return self.voices[voice]

    def set_voice(self, voice, value):
        self.voices[voice] = value

    def __repr__(self):
        return "MeasurePart(staves={}, voices={})".format(
            len(self.staves), len(self.voices)
        )


class Measure(object):
    """A timewise slice of the score, containing one `MeasurePart` per
    part.

    Parameters
    ----------
    time : TimeSignature
        The time signature of the measure
    number : int, optional
        The (0-based) index of the measure in the document

    """

    def __init__(self, time, number=None):
        self.time = time
        self.number = number
        self.parts = []

    def get_number_of_parts(self):
        return len(self.parts)

    def set_number_of_parts(self, num_parts):
        if num_parts < len(self.parts):
            del self.parts[num_parts:]
        while len(self.parts) < num_parts:
            self.parts.append(MeasurePart(time=self.time))

    def get_part(self, part):
        return self.parts[part]

    def set_part(self, part, value):
        self.parts[part] = value

    def __repr__(self):
        return "Measure(number={}, time={}/{}, parts={})".format(
            self.number, self.time.beats, self.time.beat_type, len(self.parts)
        )


def compact_voices(voices: Dict[int, Voice]) -> List[Voice]:
    """Renumber voices densely.

    Voice numbers in MusicXML are often sparse (e.g. 1 and 5 for a
    piano part with two staves). This function returns the non-empty
    voices ordered by their original number, so that the position in
    the returned list is the new voice number.

    Parameters
    ----------
    voices : dict
        Voices keyed by their (integer) number as encoded in the
        document

    Returns
    -------
    list of Voice
        Non-empty voices in ascending order of their original number

    """
    return [voices[v] for v in sorted(voices) if len(voices[v].notes) > 0]
