#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
This module contains tests for the resolution of attributes (divisions, key,
time signature and clefs) across measures.
"""
import logging
import unittest

from scoregrid.io.importmusicxml import MusicXMLDocument
from scoregrid.score import AttributeLog, AttributeSnapshot, ClefSetting, TimeSignature
from tests import make_score

LOGGER = logging.getLogger(__name__)

REST = "<note><rest/><duration>4</duration><type>whole</type></note>"


def attributes(content):
    return "<attributes>{0}</attributes>".format(content)


def clef(sign, line, number=None):
    number = ' number="{0}"'.format(number) if number is not None else ""
    return "<clef{0}><sign>{1}</sign><line>{2}</line></clef>".format(number, sign, line)


def time(beats, beat_type):
    return "<time><beats>{0}</beats><beat-type>{1}</beat-type></time>".format(
        beats, beat_type
    )


def parse(*parts):
    doc = MusicXMLDocument()
    doc.parse(make_score(*parts))
    return doc


class TestAttributeLog(unittest.TestCase):
    def test_merge_order(self):
        log = AttributeLog()
        log.record(0, 0, AttributeSnapshot(divisions=2, fifths=1))
        log.record(2, 0, AttributeSnapshot(divisions=8))
        log.record(1, 1, AttributeSnapshot(divisions=4))

        self.assertEqual(log.effective(0, 0), AttributeSnapshot(divisions=2, fifths=1))
        self.assertEqual(log.effective(1, 0), AttributeSnapshot(divisions=2, fifths=1))
        self.assertEqual(log.effective(3, 0), AttributeSnapshot(divisions=8, fifths=1))
        # parts do not share attributes
        self.assertEqual(log.effective(0, 1), AttributeSnapshot())
        self.assertEqual(log.effective(1, 1).divisions, 4)

    def test_snapshots_are_not_revised(self):
        log = AttributeLog()
        log.record(0, 0, AttributeSnapshot(divisions=2))
        with self.assertRaises(KeyError):
            log.record(0, 0, AttributeSnapshot(divisions=4))
        self.assertEqual(len(log), 1)
        self.assertIn((0, 0), log)
        self.assertIsNone(log.get(1, 0))

    def test_key_name(self):
        self.assertEqual(AttributeSnapshot(fifths=-1).key_name, "F")
        self.assertEqual(AttributeSnapshot(fifths=-1, mode="minor").key_name, "Dm")
        self.assertIsNone(AttributeSnapshot().key_name)


class TestClefSetting(unittest.TestCase):
    def test_scalar(self):
        setting = ClefSetting.scalar("bass")
        self.assertFalse(setting.is_per_staff)
        self.assertEqual(setting.for_staff(0), "bass")
        self.assertEqual(setting.for_staff(3), "bass")

    def test_per_staff(self):
        setting = ClefSetting.staffwise(["treble", None])
        self.assertTrue(setting.is_per_staff)
        self.assertEqual(setting.for_staff(0), "treble")
        self.assertIsNone(setting.for_staff(1))
        self.assertIsNone(setting.for_staff(2))
        self.assertIsNone(setting.clef)

    def test_immutable(self):
        setting = ClefSetting.scalar("bass")
        with self.assertRaises(AttributeError):
            setting.clef = "treble"


class TestAttributeInheritance(unittest.TestCase):
    def test_clef_inherited(self):
        doc = parse(
            [attributes("<divisions>1</divisions>" + clef("F", 4)) + REST]
            + [REST] * 3
        )
        self.assertEqual(doc.get_attributes(3, 0).clef, ClefSetting.scalar("bass"))
        self.assertEqual(doc.get_measure(3).get_part(0).clef, "bass")
        rest = doc.get_measure(3).get_part(0).get_voice(0).notes[0]
        self.assertEqual(rest.keys, ("D/3",))

    def test_time_override(self):
        doc = parse(
            [
                attributes("<divisions>1</divisions>" + time(3, 4)) + REST,
                REST,
                attributes(time(4, 4)) + REST,
                REST,
            ]
        )
        self.assertEqual(doc.get_attributes(0, 0).time, TimeSignature(3, 4))
        self.assertEqual(doc.get_attributes(1, 0).time, TimeSignature(3, 4))
        self.assertEqual(doc.get_attributes(2, 0).time, TimeSignature(4, 4))
        self.assertEqual(doc.get_attributes(3, 0).time, TimeSignature(4, 4))
        self.assertEqual(doc.get_measure(1).time, TimeSignature(3, 4))
        self.assertEqual(doc.get_measure(3).time, TimeSignature(4, 4))

    def test_incomplete_time_is_ignored(self):
        with self.assertWarns(UserWarning):
            doc = parse(
                [attributes("<divisions>1</divisions><time><beats>3</beats></time>") + REST]
            )
        self.assertIsNone(doc.get_attributes(0, 0).time)

    def test_key(self):
        doc = parse(
            [
                attributes("<divisions>1</divisions><key><fifths>-4</fifths></key>") + REST,
                attributes("<key><fifths>1</fifths><mode>minor</mode></key>") + REST,
            ]
        )
        self.assertEqual(doc.get_measure(0).get_part(0).key, "Ab")
        self.assertEqual(doc.get_measure(1).get_part(0).key, "Em")
        self.assertEqual(doc.fifths_to_key(-4), "Ab")
        self.assertEqual(doc.fifths_to_key(1, mode="minor"), "Em")

    def test_unknown_attributes_are_ignored(self):
        doc = parse(
            [
                attributes(
                    "<divisions>1</divisions><transpose><chromatic>-2</chromatic>"
                    "</transpose><measure-style><multiple-rest>2</multiple-rest>"
                    "</measure-style>"
                )
                + REST
            ]
        )
        self.assertEqual(doc.get_attributes(0, 0), AttributeSnapshot(divisions=1))

    def test_attributes_blocks_are_merged(self):
        doc = parse(
            [
                attributes("<divisions>1</divisions>" + clef("G", 2))
                + REST
                + attributes(clef("F", 4))
            ]
        )
        self.assertEqual(doc.get_attributes(0, 0).clef, ClefSetting.scalar("bass"))

    def test_clef_names(self):
        doc = parse(
            [attributes("<divisions>1</divisions>" + clef("G", 2)) + REST,
             attributes(clef("F", 4)) + REST,
             attributes(clef("C", 3)) + REST,
             attributes(clef("F", 3)) + REST]
        )
        clefs = [doc.get_attributes(m, 0).clef.clef for m in range(4)]
        self.assertEqual(clefs, ["treble", "bass", None, None])


class TestStaves(unittest.TestCase):
    def test_staves_only_in_first_measure(self):
        doc = parse(
            [
                attributes("<divisions>1</divisions><staves>2</staves>") + REST,
                attributes("<staves>3</staves>") + REST,
            ]
        )
        self.assertEqual(doc.num_staves, [2])
        self.assertEqual(doc.get_measure(1).get_part(0).get_number_of_staves(), 2)

    def test_staves_default(self):
        doc = parse([attributes("<divisions>1</divisions>") + REST], [REST])
        self.assertEqual(doc.num_staves, [1, 1])

    def test_staff_clefs_sized_by_staves(self):
        doc = parse(
            [
                attributes(
                    "<divisions>1</divisions><staves>3</staves>" + clef("G", 2, number=1)
                )
                + REST
            ]
        )
        setting = doc.get_attributes(0, 0).clef
        self.assertEqual(setting, ClefSetting.staffwise(["treble", None, None]))

    def test_staff_clefs_in_one_block(self):
        doc = parse(
            [
                attributes(
                    "<divisions>1</divisions><staves>2</staves>"
                    + clef("G", 2, number=1)
                    + clef("F", 4, number=2)
                )
                + REST
            ]
        )
        setting = doc.get_attributes(0, 0).clef
        self.assertEqual(setting, ClefSetting.staffwise(["treble", "bass"]))

    def test_staff_clef_carried_forward(self):
        doc = parse(
            [
                attributes(
                    "<divisions>1</divisions><staves>2</staves>"
                    + clef("G", 2, number=1)
                    + clef("F", 4, number=2)
                )
                + REST,
                REST,
                attributes(clef("F", 4, number=1)) + REST,
            ]
        )
        self.assertEqual(
            doc.get_attributes(2, 0).clef, ClefSetting.staffwise(["bass", "bass"])
        )
        # the snapshot of the first measure is unchanged
        self.assertEqual(
            doc.attributes.get(0, 0).clef, ClefSetting.staffwise(["treble", "bass"])
        )

    def test_scalar_clef_seeds_staff_clefs(self):
        doc = parse(
            [
                attributes("<divisions>1</divisions><staves>2</staves>" + clef("F", 4))
                + REST,
                attributes(clef("G", 2, number=1)) + REST,
            ]
        )
        self.assertEqual(
            doc.get_attributes(1, 0).clef, ClefSetting.staffwise(["treble", "bass"])
        )

    def test_staff_number_beyond_staves(self):
        doc = parse(
            [attributes("<divisions>1</divisions>" + clef("F", 4, number=2)) + REST]
        )
        self.assertEqual(
            doc.get_attributes(0, 0).clef, ClefSetting.staffwise([None, "bass"])
        )


if __name__ == "__main__":
    unittest.main()
