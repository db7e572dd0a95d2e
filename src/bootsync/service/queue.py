#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import logging
import pathlib
import shlex
import typing

import bootsync.context

_log = logging.getLogger(__name__)

PROGRAM = "update-bootloader"


class CommandLog(object):
    """
    Queue of boot loader commands delayed during installation.  The queue is
    a shell script; every command is one line invoking update-bootloader with
    the replay flag set, so it can also be run by hand.
    """

    def __init__(self, path: pathlib.Path, program: str = PROGRAM) -> None:
        self._path = path
        self._program = program

    @property
    def path(self) -> pathlib.Path:
        return self._path

    def append(self, argv: typing.Sequence[str]) -> None:
        """
        Appends a command.

        Keyword arguments:
        argv -- the command line arguments, without the program name
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        new = not self._path.exists()

        with open(self._path, "a") as f:
            if new:
                f.write(
                    f"#!/bin/sh\n"
                    f"# Boot loader commands delayed during installation.\n"
                    f"export {bootsync.context.REPLAY_VARIABLE}=1\n")

            f.write(" ".join(
                shlex.quote(argument)
                for argument in [self._program] + list(argv)) + "\n")

        if new:
            self._path.chmod(0o755)

        _log.info("Delayed command: %s %s", self._program, " ".join(argv))

    def commands(self) -> typing.List[typing.List[str]]:
        """Returns the queued commands in the order they were appended."""
        try:
            with open(self._path, "r") as f:
                lines = f.read().splitlines()
        except FileNotFoundError:
            return []

        result = []

        for line in lines:
            argv = shlex.split(line, comments=True)

            if argv and self._program == argv[0]:
                result.append(argv[1:])

        return result

    def drain(self, execute: typing.Callable[[typing.List[str]], bool]) -> bool:
        """
        Executes all queued commands in order and removes the queue.  Every
        command is executed even if a previous one failed.  Returns whether
        all commands succeeded.

        Keyword arguments:
        execute -- called with the arguments of each command, returns whether
                   the command succeeded
        """
        commands = self.commands()
        result = True

        for argv in commands:
            _log.info("Running delayed command: %s", " ".join(argv))

            if not execute(argv):
                _log.error(
                    "Delayed command failed: %s %s", self._program,
                    " ".join(argv))
                result = False

        if commands or self._path.exists():
            self._path.unlink()

        return result
