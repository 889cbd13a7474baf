#!/usr/bin/env python

# -*- coding: utf-8 -*-
"""
This module contains methods for reading partwise MusicXML documents into a
timewise grid of measures, resolving the attributes in force for each part
and decoding the notes of a measure into `scoregrid.score` objects.
"""

import io
import logging
import os
import re
import warnings
import zipfile

from typing import Tuple

from lxml import etree

from scoregrid.score import (
    AttributeLog,
    AttributeSnapshot,
    ClefSetting,
    Measure,
    MeasurePart,
    NoteEvent,
    TimeSignature,
    Tuplet,
    Voice,
    compact_voices,
)
from scoregrid.utils.music import (
    ALTER_SIGNS,
    DURATION_TYPES,
    InvalidTicksError,
    estimate_duration_code,
    fifths_to_key_name,
    tick_multiplier,
    ticks_from_duration,
)
from scoregrid.utils.misc import PathLike

__all__ = [
    "load_musicxml",
    "MusicXMLDocument",
    "decode_note",
    "UnsupportedInputError",
    "MusicXMLFormatError",
    "InvalidDurationError",
    "InvalidDocumentError",
]

LOGGER = logging.getLogger(__name__)

# number of characters of a text document searched for the root element
_PROBE_LENGTH = 4096
_PARTWISE_MARKER = re.compile(r"<score-partwise", re.IGNORECASE)

CLEFS = {
    ("G", 2): "treble",
    ("F", 4): "bass",
}

TIE_TYPES = {
    "start": "begin",
    "continue": "continue",
    "stop": "end",
}

BEAM_TYPES = ("begin", "continue", "end")

DEFAULT_REST_KEYS = {
    "bass": "D/3",
}
DEFAULT_REST_KEY = "B/4"


class UnsupportedInputError(Exception):
    """The input is neither MusicXML text nor a parsed XML tree."""


class MusicXMLFormatError(ValueError):
    """The document uses a structure or a value that is not supported."""


class InvalidDurationError(MusicXMLFormatError):
    """A note duration cannot be converted into ticks."""


class InvalidDocumentError(Exception):
    """Measures were requested from an invalid or unparsed document."""


def _make_parser(encoding=None):
    return etree.XMLParser(
        resolve_entities=False,
        huge_tree=False,
        remove_comments=True,
        remove_blank_text=True,
        encoding=encoding,
    )


def get_value_from_tag(e, tag, as_type, none_on_error=True):
    """
    Return the text contents of a particular tag in element e, cast as a
    particular type. By default the function will return None if either the tag
    is not found or the value cannot be cast to the desired type.

    Examples
    --------

    >>> e = lxml.etree.fromstring('<note><duration>2</duration></note>')
    >>> get_value_from_tag(e, 'duration', int)
    2
    >>> get_value_from_tag(e, 'duration', float)
    2.0

    Parameters
    ----------
    e: etree.Element
        An etree Element instance
    tag: string
        Child tag to retrieve
    as_type: function
        Function that casts the string to the desired type (e.g. int, float)
    none_on_error: bool, optional (default: True)
        When False, an exception is raised when `tag` is not found in `e` or the
        text inside `tag` cannot be cast to the desired type. When True, None is
        returned in such cases.

    Returns
    -------
    object
        The value read from `tag`, cast as `as_type`
    """
    try:
        return as_type(e.find(tag).text.strip())
    except (ValueError, AttributeError):
        if none_on_error:
            return None
        else:
            raise


def get_value_from_attribute(e, attr, as_type, none_on_error=True):
    """
    Return the value of a particular attribute of element e, cast as a
    particular type. By default the function will return None if either `e` does
    not have the attribute or the value cannot be cast to the desired type.

    Parameters
    ----------
    e: etree.Element
        An etree Element instance
    attr: string
        Attribute to retrieve
    as_type: function
        Function that casts the string to the desired type (e.g. int, float)
    none_on_error: bool, optional (default: True)
        When False, an exception is raised when the value cannot be cast.
        When True, None is returned in such cases.

    Returns
    -------
    object or None
        The attribute value, or None
    """

    value = e.get(attr)
    if value is None:
        return None
    else:
        try:
            return as_type(value)
        except ValueError:
            if none_on_error:
                return None
            else:
                raise


def _get_text(e, as_type):
    try:
        return as_type(e.text.strip())
    except (ValueError, AttributeError):
        return None


def _pitch_key(pitch):
    step = get_value_from_tag(pitch, "step", str)
    octave = get_value_from_tag(pitch, "octave", int)
    if step is None or octave is None:
        raise MusicXMLFormatError("Pitch without step or octave")

    # alter may be written as a decimal (e.g. "-1.0" or microtonal "0.5")
    alter = get_value_from_tag(pitch, "alter", float)
    if alter is not None and alter.is_integer():
        step += ALTER_SIGNS.get(int(alter), "")

    return "{0}/{1}".format(step, octave)


def _display_key(e):
    step = get_value_from_tag(e, "display-step", str)
    octave = get_value_from_tag(e, "display-octave", int)
    if step is None or octave is None:
        return None
    return "{0}/{1}".format(step, octave)


def _tie_state(tie_types):
    states = set()
    for tie_type in tie_types:
        try:
            states.add(TIE_TYPES[tie_type])
        except KeyError:
            raise MusicXMLFormatError("Bad tie: {0}".format(tie_type))

    if "continue" in states or {"begin", "end"} <= states:
        return "continue"
    elif "begin" in states:
        return "begin"
    elif "end" in states:
        return "end"
    return None


def decode_note(e, attributes):
    """
    Decode a <note> element into a `NoteEvent`.

    Parameters
    ----------
    e : etree.Element
        The <note> element
    attributes : AttributeSnapshot
        The attributes in force for the part at the measure containing
        the note. `divisions` is needed to compute ticks, and `clef`
        to position rests that have no display position.

    Returns
    -------
    NoteEvent
        The decoded note

    Raises
    ------
    InvalidDurationError
        When the note has a duration but no usable divisions are in force
    MusicXMLFormatError
        When the note has an unknown beam or tie value
    """
    rest = False
    chord = False
    grace = False
    keys = None
    dur_type = None
    dots = 0
    ticks = None
    actual_notes = None
    normal_notes = None
    voice = 0
    staff = 0
    stem_direction = None
    beam = None
    tie_types = []

    for child in e.iterchildren(tag=etree.Element):
        tag = child.tag

        if tag == "pitch":
            keys = [_pitch_key(child)]

        elif tag == "unpitched":
            key = _display_key(child)
            if key is not None:
                keys = [key]

        elif tag == "rest":
            rest = True
            key = _display_key(child)
            if key is not None:
                keys = [key]

        elif tag == "type":
            type_name = _get_text(child, str)
            dur_type = DURATION_TYPES.get(type_name)
            if dur_type is None:
                warnings.warn("ignoring note type {0}".format(type_name))

        elif tag == "dot":
            dots += 1

        elif tag == "duration":
            duration = _get_text(child, int)
            try:
                ticks = ticks_from_duration(duration, attributes.divisions)
            except InvalidTicksError as err:
                raise InvalidDurationError(
                    "Error parsing MusicXML duration: {0}".format(err)
                ) from err

        elif tag == "time-modification":
            actual_notes = get_value_from_tag(child, "actual-notes", int)
            normal_notes = get_value_from_tag(child, "normal-notes", int)

        elif tag == "chord":
            chord = True

        elif tag == "grace":
            grace = True

        elif tag == "voice":
            voice = _get_text(child, int) or 0

        elif tag == "staff":
            number = _get_text(child, int)
            if number is not None and number > 0:
                staff = number - 1

        elif tag == "stem":
            text = _get_text(child, str)
            if text == "up":
                stem_direction = 1
            elif text == "down":
                stem_direction = -1

        elif tag == "beam":
            # only the primary beam level is decoded; secondary levels
            # may carry hooks
            if (get_value_from_attribute(child, "number", int) or 1) == 1:
                beam = _get_text(child, str)
                if beam not in BEAM_TYPES:
                    raise MusicXMLFormatError("Bad beam in MusicXML: {0}".format(beam))

        elif tag == "notations":
            for tied in child.iterchildren("tied"):
                tie_types.append(tied.get("type"))

    if actual_notes and normal_notes:
        multiplier = tick_multiplier(actual_notes, normal_notes)
        tuplet = Tuplet(actual_notes, normal_notes)
    else:
        multiplier = tick_multiplier(1, 1)
        tuplet = None

    if dur_type is not None:
        duration_code = dur_type + "d" * dots
    else:
        duration_code = estimate_duration_code(ticks, multiplier)

    if duration_code is not None and rest:
        duration_code += "r"

    # default rest position depends on the clef of the staff of the rest
    if rest and keys is None:
        clef = attributes.clef.for_staff(staff) if attributes.clef else None
        keys = [DEFAULT_REST_KEYS.get(clef, DEFAULT_REST_KEY)]

    return NoteEvent(
        keys=keys or [],
        duration=duration_code,
        ticks=ticks,
        rest=rest,
        chord=chord,
        tick_multiplier=multiplier,
        tuplet=tuplet,
        tie=_tie_state(tie_types),
        beam=beam,
        stem_direction=stem_direction,
        voice=voice,
        staff=staff,
        grace=grace,
    )


def _clefs_per_staff(setting, num_staves):
    if setting is None:
        return [None] * num_staves
    if setting.is_per_staff:
        return list(setting.per_staff)
    return [setting.clef] * num_staves


class MusicXMLDocument(object):
    """A partwise MusicXML document, organized as a timewise grid of
    measures.

    Parameters
    ----------
    default_time : tuple, optional
        Time signature (beats, beat_type) of measures for which no part
        declares a time signature. Defaults to (4, 4).

    Attributes
    ----------
    document : etree.Element or None
        The root element of the parsed document
    measures : list of lists
        `measures[m][p]` is the <measure> element of part `p` at
        measure index `m`
    num_staves : list of int
        Number of staves of each part
    part_ids : list
        The id of each part
    part_names : list
        The name of each part, as declared in the part list
    attributes : AttributeLog
        The attributes declared by each part in each measure
    valid : bool or None
        None before parsing, afterwards whether all parts have the same
        number of measures

    """

    def __init__(self, default_time: Tuple[int, int] = (4, 4)):
        self.default_time = TimeSignature(*default_time)
        self.document = None
        self.measures = []
        self.num_staves = []
        self.part_ids = []
        self.part_names = []
        self.attributes = AttributeLog()
        self.valid = None
        self._names = {}

    @staticmethod
    def appears_valid(data):
        """
        Return True if `data` looks like a partwise MusicXML document. This
        is a quick check, not a validation.

        Parameters
        ----------
        data : str, bytes, etree.ElementTree or etree.Element
            MusicXML text or a parsed document

        Returns
        -------
        bool
        """
        if isinstance(data, bytes):
            data = data[:_PROBE_LENGTH].decode("utf-8", errors="ignore")
        if isinstance(data, str):
            return _PARTWISE_MARKER.search(data[:_PROBE_LENGTH]) is not None
        if isinstance(data, etree._ElementTree):
            data = data.getroot()
        if isinstance(data, etree._Element):
            return data.tag == "score-partwise"
        return False

    def is_valid(self):
        return bool(self.valid)

    def parse(self, data):
        """
        Parse MusicXML text, or a parsed MusicXML document, and build the
        grid of measures.

        When the parts do not have the same number of measures, the
        document is marked invalid (see `is_valid`) and no exception is
        raised.

        Parameters
        ----------
        data : str, bytes, etree.ElementTree or etree.Element
            The MusicXML document

        Returns
        -------
        bool
            Whether the document is valid

        Raises
        ------
        UnsupportedInputError
            When `data` cannot be parsed as XML
        MusicXMLFormatError
            When the document is not a partwise score
        """
        if self.valid is not None:
            raise RuntimeError("MusicXMLDocument instances can only be parsed once")

        if isinstance(data, (str, bytes)):
            if isinstance(data, str):
                data = data.encode("utf-8")
                parser = _make_parser(encoding="utf-8")
            else:
                parser = _make_parser()
            try:
                root = etree.fromstring(data, parser)
            except etree.XMLSyntaxError as err:
                self.valid = False
                raise UnsupportedInputError("Cannot parse MusicXML: {0}".format(err))
        elif isinstance(data, etree._ElementTree):
            root = data.getroot()
        elif isinstance(data, etree._Element):
            root = data
        else:
            self.valid = False
            raise UnsupportedInputError(
                "MusicXML requires XML text or an lxml tree, not {0}".format(
                    type(data).__name__
                )
            )

        if root.tag != "score-partwise":
            self.valid = False
            raise MusicXMLFormatError(
                "Currently only score-partwise structure is supported"
            )

        self.document = root
        self._parse_partlist(root.find("part-list"))

        valid = True
        for part_index, part_el in enumerate(root.iterchildren("part")):
            if not self._parse_part(part_index, part_el):
                valid = False
                break

        self.valid = valid
        return self.valid

    def _parse_partlist(self, partlist):
        if partlist is None:
            return
        for e in partlist.iterchildren("score-part"):
            self._names[e.get("id")] = get_value_from_tag(e, "part-name", str)

    def _parse_part(self, part_index, part_el):
        part_id = part_el.get("id")
        self.part_ids.append(part_id)
        self.part_names.append(self._names.get(part_id))
        self.num_staves.append(None)

        for measure_index, measure_el in enumerate(part_el.iterchildren("measure")):
            if measure_index == len(self.measures):
                self.measures.append([])

            if len(self.measures[measure_index]) != part_index:
                LOGGER.warning(
                    "Part {0} ({1}) has more measures than the preceding parts".format(
                        part_index, part_id
                    )
                )
                return False

            self.measures[measure_index].append(measure_el)

            attributes = measure_el.findall("attributes")
            if attributes:
                snapshot = self.parse_attributes(measure_index, part_index, attributes)
                self.attributes.record(measure_index, part_index, snapshot)

        if self.num_staves[part_index] is None:
            self.num_staves[part_index] = 1

        if any(len(row) != part_index + 1 for row in self.measures):
            LOGGER.warning(
                "Part {0} ({1}) has fewer measures than the preceding parts".format(
                    part_index, part_id
                )
            )
            return False

        return True

    def parse_attributes(self, measure_index, part_index, attributes):
        """
        Parse the <attributes> elements of a part in a measure.

        The <staves> element is only taken into account in the first
        measure, and is stored in `num_staves` rather than in the
        snapshot.

        Parameters
        ----------
        measure_index : int
            Index of the measure
        part_index : int
            Index of the part
        attributes : list of etree.Element
            The <attributes> elements of the measure, in document order

        Returns
        -------
        AttributeSnapshot
            The attributes declared in the measure
        """
        values = {}

        for attributes_el in attributes:
            for e in attributes_el.iterchildren(tag=etree.Element):

                if e.tag == "staves":
                    staves = _get_text(e, int)
                    if measure_index == 0 and staves:
                        self.num_staves[part_index] = staves

                elif e.tag == "key":
                    fifths = get_value_from_tag(e, "fifths", int)
                    if fifths is not None:
                        values["fifths"] = fifths
                        values["mode"] = get_value_from_tag(e, "mode", str) or "none"

                elif e.tag == "time":
                    beats = get_value_from_tag(e, "beats", int)
                    beat_type = get_value_from_tag(e, "beat-type", int)
                    if beats and beat_type:
                        values["time"] = TimeSignature(beats, beat_type)
                    else:
                        warnings.warn(
                            "ignoring time signature in measure {0}".format(
                                measure_index
                            )
                        )

                elif e.tag == "clef":
                    values["clef"] = self._parse_clef(
                        e, measure_index, part_index, values.get("clef")
                    )

                elif e.tag == "divisions":
                    divisions = _get_text(e, int)
                    if divisions is not None:
                        values["divisions"] = divisions

                else:
                    LOGGER.debug("ignoring attribute {0}".format(e.tag))

        return AttributeSnapshot(**values)

    def _parse_clef(self, e, measure_index, part_index, current):
        number = get_value_from_attribute(e, "number", int)
        sign = get_value_from_tag(e, "sign", str)
        line = get_value_from_tag(e, "line", int)
        clef = CLEFS.get((sign, line))

        if number is None or number < 1:
            return ClefSetting.scalar(clef)

        # the clefs of the other staves carry over, either from this
        # measure or from the preceding measures
        if current is None and measure_index > 0:
            current = self.attributes.effective(measure_index - 1, part_index).clef

        clefs = _clefs_per_staff(current, self.num_staves[part_index] or 1)
        if number > len(clefs):
            clefs.extend([None] * (number - len(clefs)))
        clefs[number - 1] = clef

        return ClefSetting.staffwise(clefs)

    def _check_valid(self):
        if self.valid is None:
            raise InvalidDocumentError("No MusicXML document has been parsed")
        if not self.valid:
            raise InvalidDocumentError(
                "The parts of the MusicXML document have different numbers of measures"
            )

    @property
    def number_of_measures(self):
        self._check_valid()
        return len(self.measures)

    @property
    def number_of_parts(self):
        self._check_valid()
        return len(self.part_ids)

    def get_attributes(self, m, p):
        """Return the attributes in force for part `p` at measure `m`."""
        return self.attributes.effective(m, p)

    def fifths_to_key(self, fifths, mode=None):
        return fifths_to_key_name(fifths, mode=mode)

    def get_measure(self, m):
        """
        Create the `m`-th measure.

        Parameters
        ----------
        m : int
            Index of the measure (0-based)

        Returns
        -------
        Measure
            The measure, with one `MeasurePart` per part

        Raises
        ------
        InvalidDocumentError
            When the document is invalid
        IndexError
            When `m` is out of range
        """
        self._check_valid()
        if not 0 <= m < len(self.measures):
            raise IndexError("Measure {0} out of range".format(m))

        row = self.measures[m]
        time = self.get_attributes(m, 0).time or self.default_time
        measure = Measure(time=time, number=m)
        measure.set_number_of_parts(len(row))

        for p, measure_el in enumerate(row):
            attrs = self.get_attributes(m, p)
            part_clef = None
            if attrs.clef is not None and not attrs.clef.is_per_staff:
                part_clef = attrs.clef.clef

            measure.set_part(
                p,
                MeasurePart(
                    time=attrs.time or time,
                    clef=part_clef,
                    key=attrs.key_name,
                    part_id=self.part_ids[p],
                ),
            )
            part = measure.get_part(p)
            part.set_number_of_staves(self.num_staves[p])
            if attrs.clef is not None and attrs.clef.is_per_staff:
                for s in range(self.num_staves[p]):
                    part.set_stave(s, clef=attrs.clef.for_staff(s))

            voices = compact_voices(self._decode_voices(m, measure_el, attrs))
            part.set_number_of_voices(len(voices))
            for v, voice in enumerate(voices):
                part.set_voice(v, voice)

        return measure

    def _decode_voices(self, m, measure_el, attrs):
        voices = {}
        for note_el in measure_el.iter("note"):
            note = decode_note(note_el, attrs)
            voice = voices.get(note.voice)

            if note.chord:
                if voice is not None and len(voice) > 0:
                    for key in note.keys:
                        voice.add_chord_key(key)
                    continue
                warnings.warn(
                    "chord note without a preceding note in voice {0} "
                    "of measure {1}".format(note.voice, m)
                )

            if voice is None:
                voice = voices[note.voice] = Voice()
            voice.add_note(note)

        return voices

    def iter_measures(self):
        for m in range(self.number_of_measures):
            yield self.get_measure(m)


def _read_compressed(filename):
    """Return the score document of an .mxl archive as a file-like
    object."""
    with zipfile.ZipFile(filename) as zipped_xml:
        names = zipped_xml.namelist()
        rootfile = None

        if "META-INF/container.xml" in names:
            container = etree.fromstring(
                zipped_xml.read("META-INF/container.xml"), _make_parser()
            )
            for e in container.iter("{*}rootfile"):
                rootfile = e.get("full-path")
                break

        if rootfile is None:
            candidates = [
                n
                for n in names
                if not n.startswith("META-INF/")
                and os.path.splitext(n)[1].lower() in (".xml", ".musicxml")
            ]
            if not candidates:
                raise MusicXMLFormatError(
                    "No MusicXML document found in {0}".format(filename)
                )
            rootfile = candidates[0]

        return io.BytesIO(zipped_xml.read(rootfile))


def load_musicxml(
    filename: PathLike,
    default_time: Tuple[int, int] = (4, 4),
    strict: bool = False,
) -> MusicXMLDocument:
    """Parse a MusicXML file and build a `MusicXMLDocument` from it.

    Parameters
    ----------
    filename : str or file-like  object
        Path to the MusicXML file to be parsed (uncompressed or .mxl),
        or a file-like object
    default_time : tuple, optional
        Time signature of measures for which no time signature is
        declared. Defaults to (4, 4).
    strict : bool, optional
        When True, an `InvalidDocumentError` is raised if the parts of
        the document have different numbers of measures. Otherwise the
        returned document is marked invalid. Defaults to False.

    Returns
    -------
    doc: MusicXMLDocument
        The parsed document
    """
    xml = None
    if isinstance(filename, (str, os.PathLike)) and zipfile.is_zipfile(filename):
        xml = _read_compressed(filename)

    if xml is None:
        xml = filename

    try:
        document = etree.parse(xml, _make_parser())
    except etree.XMLSyntaxError as err:
        raise UnsupportedInputError("Cannot parse MusicXML: {0}".format(err))

    doc = MusicXMLDocument(default_time=default_time)
    doc.parse(document)

    if strict and not doc.is_valid():
        raise InvalidDocumentError(
            "The parts of {0} have different numbers of measures".format(filename)
        )

    return doc
