#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import unittest

from bootsync.kernel import FlavorKind, KernelFlavor, parse_flavor, \
    parse_image


class KernelImageTests(unittest.TestCase):
    def test_parse_default(self):
        kernel = parse_image("/boot/vmlinuz-5.0-default")
        self.assertEqual("5.0", kernel.version)
        self.assertEqual(FlavorKind.DEFAULT, kernel.flavor.kind)
        self.assertTrue(kernel.flavor.is_canonical)

    def test_parse_long_version(self):
        kernel = parse_image("vmlinuz-5.14.21-150500.55.19-default")
        self.assertEqual("5.14.21-150500.55.19", kernel.version)
        self.assertEqual("default", str(kernel.flavor))

    def test_parse_xen_variants(self):
        for token in ["xen", "xenpae"]:
            with self.subTest(token=token):
                flavor = parse_image(f"/boot/vmlinuz-2.6.16-{token}").flavor
                self.assertTrue(flavor.is_xen)
                self.assertEqual(token, flavor.token)

    def test_parse_other(self):
        flavor = parse_image("/boot/vmlinuz-5.0-rt").flavor
        self.assertEqual(KernelFlavor(FlavorKind.OTHER, "rt"), flavor)
        self.assertFalse(flavor.is_canonical)

    def test_parse_without_flavor(self):
        for image in ["/boot/vmlinuz", "/boot/vmlinuz-5.0"]:
            with self.subTest(image=image):
                self.assertEqual(
                    FlavorKind.NONE, parse_image(image).flavor.kind)

        self.assertEqual("5.0", parse_image("/boot/vmlinuz-5.0").version)

    def test_parse_flavor(self):
        self.assertEqual(FlavorKind.DEBUG, parse_flavor("debug").kind)
        self.assertEqual(FlavorKind.DESKTOP, parse_flavor("Desktop").kind)
        self.assertEqual(FlavorKind.BIGSMP, parse_flavor("bigsmp").kind)
        self.assertEqual(FlavorKind.NONE, parse_flavor("").kind)

    def test_flavor_equality(self):
        self.assertEqual(parse_flavor("default"), parse_flavor("default"))
        self.assertNotEqual(parse_flavor("default"), parse_flavor("xen"))
        self.assertNotEqual(parse_flavor("xen"), parse_flavor("xenpae"))
