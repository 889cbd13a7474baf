"""The top level of the package contains functions to load MusicXML
documents and the classes of the measure model that is built from
them.

"""

from importlib.metadata import version, PackageNotFoundError

from .io import load_score, NotSupportedFormatError
from .io.importmusicxml import (
    load_musicxml,
    decode_note,
    MusicXMLDocument,
    UnsupportedInputError,
    MusicXMLFormatError,
    InvalidDurationError,
    InvalidDocumentError,
)
from .score import Measure, MeasurePart, Voice, NoteEvent, compact_voices
from .utils.music import RESOLUTION, fifths_to_key_name, note_array_from_measure

# define a version variable
try:
    __version__ = version("scoregrid")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "load_score",
    "load_musicxml",
    "decode_note",
    "MusicXMLDocument",
    "Measure",
    "MeasurePart",
    "Voice",
    "NoteEvent",
    "compact_voices",
    "fifths_to_key_name",
    "note_array_from_measure",
    "RESOLUTION",
]
