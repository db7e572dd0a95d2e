#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import unittest
from unittest import mock

import sh

from bootsync.service.installer import CommandInstaller, Result


class ResultTests(unittest.TestCase):
    def test_truth(self):
        self.assertTrue(Result(0))
        self.assertFalse(Result(1, "failed"))


class CommandInstallerTests(unittest.TestCase):
    def test_success(self):
        with mock.patch("sh.Command") as command:
            command.return_value.return_value = "installed\n"
            result = CommandInstaller().install("grub-install", ["/dev/sda"])

        command.assert_called_once_with("grub-install")
        command.return_value.assert_called_once_with("/dev/sda")
        self.assertEqual(0, result.code)
        self.assertEqual("installed\n", result.output)

    def test_command_not_found(self):
        with mock.patch(
                "sh.Command", side_effect=sh.CommandNotFound("lilo")):
            result = CommandInstaller().install("lilo", [])

        self.assertEqual(127, result.code)

    def test_unexecutable_program(self):
        with mock.patch(
                "sh.Command",
                side_effect=OSError(8, "Exec format error")):
            result = CommandInstaller().install("zipl", [])

        self.assertFalse(result)
        self.assertEqual(126, result.code)
        self.assertIn("Exec format error", result.output)
