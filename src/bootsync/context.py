#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import os
import pathlib
import platform
import typing


# Environment variables consulted by RuntimeContext.from_environment().
INSTALL_IMAGE_VARIABLE = "YAST_IS_RUNNING"
REPLAY_VARIABLE = "UPDATE_BOOTLOADER_REPLAY"
ROOT_VARIABLE = "UPDATE_BOOTLOADER_ROOT"


class RuntimeContext(object):
    """
    Describes the environment an invocation runs in.  Everything that used
    to be read from ambient globals is passed around in this object instead.
    """

    def __init__(
            self, is_install_image: bool = False, is_replay: bool = False,
            root_prefix: pathlib.Path = pathlib.Path("/"),
            architecture: str = None) -> None:
        self.is_install_image = is_install_image
        self.is_replay = is_replay
        self.root_prefix = pathlib.Path(root_prefix)
        self.architecture = architecture or platform.machine()

    @classmethod
    def from_environment(
            cls, environ: typing.Mapping[str, str] = None) -> \
            "RuntimeContext":
        """
        Builds a context from environment variables.

        Keyword arguments:
        environ -- the environment to inspect (default os.environ)
        """
        if environ is None:
            environ = os.environ

        return cls(
            is_install_image="instsys" == environ.get(INSTALL_IMAGE_VARIABLE),
            is_replay=bool(environ.get(REPLAY_VARIABLE)),
            root_prefix=pathlib.Path(environ.get(ROOT_VARIABLE) or "/"))

    def replaying(self) -> "RuntimeContext":
        """Returns a copy of this context with the replay flag set."""
        return RuntimeContext(
            self.is_install_image, True, self.root_prefix, self.architecture)

    def path(self, path: typing.Union[str, pathlib.PurePath]) -> pathlib.Path:
        """
        Maps an absolute system path below the root prefix.

        Keyword arguments:
        path -- the absolute path
        """
        path = pathlib.PurePath(path)
        return self.root_prefix / path.relative_to(path.anchor) \
            if path.is_absolute() else self.root_prefix / path
