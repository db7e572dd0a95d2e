#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import logging
import sh
import shutil
import typing

_log = logging.getLogger(__name__)


class Result(object):
    """Outcome of an external program run."""

    def __init__(self, code: int, output: str = "") -> None:
        self.code = code
        self.output = output

    def __bool__(self) -> bool:
        return 0 == self.code


class Installer(object):
    """Runs boot loader installation and configuration programs."""

    def available(self, program: str) -> bool:
        """
        Returns whether program can be run.

        Keyword arguments:
        program -- the program name
        """
        raise NotImplementedError

    def install(self, target: str, options: typing.Sequence[str]) -> Result:
        """
        Runs target with options and returns its result.  Failures are
        reported through the result, never retried.

        Keyword arguments:
        target  -- the program to run, e.g. "grub2-install"
        options -- the program arguments
        """
        raise NotImplementedError


class CommandInstaller(Installer):
    """Installer running the real programs."""

    def available(self, program: str) -> bool:
        return shutil.which(program) is not None

    def install(self, target: str, options: typing.Sequence[str]) -> Result:
        _log.info("Running %s %s", target, " ".join(options))

        try:
            output = sh.Command(target)(*options)
        except sh.CommandNotFound:
            _log.error("%s: Command not found", target)
            return Result(127, f"{target}: Command not found")
        except sh.ErrorReturnCode as e:
            _log.error("%s exited with %d", target, e.exit_code)
            return Result(
                e.exit_code, e.stderr.decode("utf-8", errors="replace"))
        except OSError as e:
            _log.error("Unable to run %s: %s", target, e.strerror)
            return Result(126, f"{target}: {e.strerror}")

        _log.debug("%s succeeded", target)
        return Result(0, str(output))
