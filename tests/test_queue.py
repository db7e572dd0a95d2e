#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import os
import unittest

from bootsync.service.queue import CommandLog

from tests import Sandbox


class CommandLogTests(unittest.TestCase):
    def setUp(self):
        self.sandbox = Sandbox()
        self.queue = CommandLog(
            self.sandbox.path("/var/lib/update-bootloader/delayed"))

    def tearDown(self):
        self.sandbox.remove()

    def test_append(self):
        self.queue.append(["--refresh"])
        self.queue.append(
            ["--add", "--image", "/boot/vmlinuz-5.0-default", "--name",
             "SLES 15 - 5.0"])
        buffer = self.queue.path.read_text()

        self.assertTrue(buffer.startswith("#!/bin/sh\n"))
        self.assertIn("export UPDATE_BOOTLOADER_REPLAY=1\n", buffer)
        self.assertIn("update-bootloader --refresh\n", buffer)
        self.assertIn("--name 'SLES 15 - 5.0'\n", buffer)
        self.assertTrue(os.access(self.queue.path, os.X_OK))

        self.assertEqual([
            ["--refresh"],
            ["--add", "--image", "/boot/vmlinuz-5.0-default", "--name",
             "SLES 15 - 5.0"]], self.queue.commands())

    def test_commands_of_missing_queue(self):
        self.assertEqual([], self.queue.commands())

    def test_drain_runs_all_commands(self):
        self.queue.append(["--remove", "--image", "/boot/vmlinuz-a"])
        self.queue.append(["--remove", "--image", "/boot/vmlinuz-b"])
        self.queue.append(["--refresh"])
        executed = []

        def execute(argv):
            executed.append(argv[-1])
            return "/boot/vmlinuz-a" != argv[-1]

        self.assertFalse(self.queue.drain(execute))
        self.assertEqual(
            ["/boot/vmlinuz-a", "/boot/vmlinuz-b", "--refresh"], executed)
        self.assertFalse(self.queue.path.exists())

    def test_drain_empty(self):
        self.assertTrue(self.queue.drain(lambda argv: False))
