#!/usr/bin/python
# -*- coding: utf-8 -*-
"""
This module contains methods for importing symbolic music formats.
"""
import os

from .importmusicxml import (
    load_musicxml,
    MusicXMLDocument,
    UnsupportedInputError,
    MusicXMLFormatError,
    InvalidDurationError,
    InvalidDocumentError,
)
from scoregrid.utils.misc import PathLike


class NotSupportedFormatError(Exception):
    pass


def load_score(filename: PathLike, **kwargs) -> MusicXMLDocument:
    """
    Load a score format supported by scoregrid. Currently the accepted
    formats are uncompressed (.xml, .musicxml) and compressed (.mxl)
    MusicXML.

    Parameters
    ----------
    filename : str
        Filename of the score to parse
    **kwargs
        Keyword arguments passed on to `load_musicxml`

    Returns
    -------
    doc: :class:`scoregrid.io.MusicXMLDocument`
        The parsed document.
    """

    extension = os.path.splitext(filename)[-1].lower()
    if extension in (".mxl", ".xml", ".musicxml"):
        return load_musicxml(filename=filename, **kwargs)
    else:
        raise NotSupportedFormatError(
            f"{extension} file extension is not supported."
        )
