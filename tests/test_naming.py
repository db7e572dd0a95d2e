#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import unittest

from bootsync.kernel import parse_flavor
from bootsync.naming import normalize_architecture, section_names, \
    wants_failsafe

PRODUCT = "openSUSE Leap 15.5"


class SectionNamesTests(unittest.TestCase):
    def test_canonical_descriptive(self):
        names = section_names(
            "grub", "/boot/vmlinuz-5.0-default", PRODUCT,
            architecture="x86_64")
        self.assertEqual(f"{PRODUCT} - 5.0", names.primary)
        self.assertEqual(f"Failsafe -- {PRODUCT} - 5.0", names.failsafe)

    def test_canonical_short(self):
        names = section_names(
            "zipl", "/boot/image-5.0-default", PRODUCT,
            architecture="s390x")
        self.assertEqual(PRODUCT, names.primary)
        self.assertEqual("Failsafe", names.failsafe)

    def test_xen(self):
        names = section_names(
            "grub", "/boot/vmlinuz-5.0-xenpae", PRODUCT, xen=True,
            architecture="x86_64")
        self.assertEqual(f"Xenpae -- {PRODUCT} - 5.0", names.primary)
        self.assertIsNone(names.failsafe)

        names = section_names(
            "elilo", "/boot/vmlinuz-5.0-xen", PRODUCT, xen=True,
            architecture="ia64")
        self.assertEqual("Xen", names.primary)
        self.assertIsNone(names.failsafe)

    def test_xen_kernel_with_canonical_image(self):
        names = section_names(
            "grub", "/boot/vmlinuz-5.0-default", PRODUCT, xen=True,
            architecture="x86_64")
        self.assertEqual(f"{PRODUCT} - 5.0", names.primary)
        self.assertIsNone(names.failsafe)

        names = section_names(
            "zipl", "/boot/image-5.0-default", PRODUCT, xen=True,
            architecture="s390x")
        self.assertEqual(PRODUCT, names.primary)
        self.assertIsNone(names.failsafe)

    def test_xen_without_flavor(self):
        names = section_names(
            "grub", "/boot/vmlinuz", PRODUCT, xen=True, architecture="x86_64")
        self.assertEqual(f"Xen -- {PRODUCT}", names.primary)
        self.assertIsNone(names.failsafe)

    def test_other_flavor(self):
        names = section_names(
            "lilo", "/boot/vmlinuz-5.0-desktop", PRODUCT,
            architecture="i686")
        self.assertEqual(f"Desktop -- {PRODUCT} - 5.0", names.primary)
        self.assertEqual(
            f"Failsafe -- Desktop -- {PRODUCT} - 5.0", names.failsafe)

        names = section_names(
            "grub", "/boot/vmlinuz-5.0-debug", PRODUCT, architecture="x86_64")
        self.assertEqual(f"Debug -- {PRODUCT} - 5.0", names.primary)
        self.assertIsNone(names.failsafe)

    def test_other_flavor_short(self):
        names = section_names(
            "elilo", "/boot/vmlinuz-5.0-desktop", PRODUCT,
            architecture="ia64")
        self.assertEqual(PRODUCT, names.primary)
        self.assertEqual("Failsafe", names.failsafe)

    def test_previous(self):
        names = section_names(
            "grub", "/boot/vmlinuz-4.9-default", PRODUCT, previous=True,
            architecture="x86_64")
        self.assertEqual("Previous Kernel - 4.9", names.primary)
        self.assertEqual("Failsafe -- Previous Kernel - 4.9", names.failsafe)

        names = section_names(
            "zipl", "/boot/image-4.9-default", PRODUCT, previous=True,
            architecture="s390x")
        self.assertEqual("previous linux", names.primary)
        self.assertEqual("previous failsafe", names.failsafe)

    def test_unknown_loader_is_short(self):
        names = section_names(
            "yaboot", "/boot/vmlinux-5.0-default", PRODUCT,
            architecture="ppc64")
        self.assertEqual(PRODUCT, names.primary)
        self.assertIsNone(names.failsafe)

    def test_no_flavor_uses_name(self):
        names = section_names(
            "grub", "/boot/vmlinuz", PRODUCT, architecture="x86_64",
            name="Linux")
        self.assertEqual("Linux", names.primary)
        self.assertIsNone(names.failsafe)


class FailsafeTests(unittest.TestCase):
    def test_architectures(self):
        flavor = parse_flavor("default")

        for architecture in ["i386", "i586", "x86_64", "s390x", "ia64"]:
            with self.subTest(architecture=architecture):
                self.assertTrue(wants_failsafe(architecture, flavor, False))

        for architecture in ["aarch64", "ppc64le", "s390"]:
            with self.subTest(architecture=architecture):
                self.assertFalse(wants_failsafe(architecture, flavor, False))

    def test_flavors(self):
        for token in ["default", "smp", "bigsmp", "pae", "desktop"]:
            with self.subTest(token=token):
                self.assertTrue(
                    wants_failsafe("x86_64", parse_flavor(token), False))

        for token in ["xen", "debug", "rt"]:
            with self.subTest(token=token):
                self.assertFalse(
                    wants_failsafe("x86_64", parse_flavor(token), False))

    def test_never_for_xen_sections(self):
        self.assertFalse(wants_failsafe("x86_64", parse_flavor("default"), True))

    def test_normalize_architecture(self):
        self.assertEqual("i386", normalize_architecture("i686"))
        self.assertEqual("x86_64", normalize_architecture("x86_64"))
