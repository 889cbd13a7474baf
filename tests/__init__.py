#!/usr/bin/env python
# -*- coding: utf-8 -*-
# pylint: skip-file
"""
This module contains tests.
"""

import os

BASE_PATH = os.path.dirname(os.path.realpath(__file__))
DATA_PATH = os.path.join(BASE_PATH, "data")
MUSICXML_PATH = os.path.join(DATA_PATH, "musicxml")

# a two staff piano part with sparse voice numbers, chords, ties, tuplets
# and attribute changes
MUSICXML_PIANO_TESTFILES = [
    os.path.join(MUSICXML_PATH, fn) for fn in ["test_grid_piano.musicxml"]
]

MUSICXML_TWO_PARTS_TESTFILES = [
    os.path.join(MUSICXML_PATH, fn) for fn in ["test_two_parts.musicxml"]
]

# documents whose parts have different numbers of measures
MUSICXML_INVALID_TESTFILES = [
    os.path.join(MUSICXML_PATH, fn) for fn in ["test_missing_measure.musicxml"]
]


def make_score(*parts):
    """Return the text of a partwise score with the given parts. Each
    part is a list of strings with the content of its measures.

    """
    part_els = []
    for i, measures in enumerate(parts):
        measure_els = "".join(
            '<measure number="{0}">{1}</measure>'.format(j + 1, m)
            for j, m in enumerate(measures)
        )
        part_els.append('<part id="P{0}">{1}</part>'.format(i + 1, measure_els))
    return "<score-partwise>{0}</score-partwise>".format("".join(part_els))
