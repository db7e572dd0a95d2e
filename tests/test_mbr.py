#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import unittest

import bootsync.service.mbr

from tests import Sandbox


class ExamineTests(unittest.TestCase):
    def setUp(self):
        self.sandbox = Sandbox()

    def tearDown(self):
        self.sandbox.remove()

    def mbr(self, code=b"", signature=b"\x55\xaa", size=512):
        block = code.ljust(510, b"\x00") + signature
        path = self.sandbox.path("/dev/sda")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(block[:size])
        return path

    def test_boot_code(self):
        for code, expected in [
                (b"\xebc\x90" + b"\x00" * 300 + b"GRUB \x00Geom", "grub"),
                (b"\xfa\xeb\x21\x01\xb4\x01LILO\x16\x10", "lilo"),
                (b"\x33\xc0Invalid partition table\x00Error loading "
                 b"operating system\x00Missing operating system", "windows"),
                (b"\xfa\x31\xc0Missing operating system.", "generic"),
                (b"\xfa\x31\xc0No operating system", "generic"),
                (b"\xfa\x31\xc0\x8e\xd8", "unknown")]:
            with self.subTest(expected=expected):
                self.assertEqual(
                    expected, bootsync.service.mbr.examine(self.mbr(code)))

    def test_lilo_signature_only_at_start(self):
        code = b"\xfa" + b"\x90" * 100 + b"LILO"
        self.assertEqual("unknown", bootsync.service.mbr.examine(self.mbr(code)))

    def test_empty(self):
        self.assertEqual("empty", bootsync.service.mbr.examine(self.mbr()))

    def test_invalid(self):
        path = self.mbr(b"GRUB", signature=b"\x00\x00")
        self.assertEqual("invalid", bootsync.service.mbr.examine(path))

    def test_unreadable(self):
        self.assertIsNone(bootsync.service.mbr.examine(
            self.sandbox.path("/dev/sdz")))
        self.assertIsNone(bootsync.service.mbr.examine(
            self.mbr(b"GRUB", size=100)))
