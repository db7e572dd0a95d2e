#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import jsonschema
import logging
import os
import pathlib
import re
import typing

import bootsync.context
import bootsync.error
import bootsync.namespace

_log = logging.getLogger(__name__)

# Boot loaders known to the engine.  "none" disables it entirely.
LOADERS = ("grub", "grub2", "grub2-efi", "lilo", "elilo", "zipl", "none")


class Configuration(object):
    """Boot Sync configuration."""

    _schema = {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "loader": {
                "type": "string",
                "enum": list(LOADERS)
            },
            "product": {
                "type": "string"
            },
            "append": {
                "type": "string"
            },
            "failsafe_append": {
                "type": "string"
            },
            "xen_kernel": {
                "type": "string"
            },
            "xen_append": {
                "type": "string"
            },
            "boot_mount_point": {
                "type": "string"
            },
            "install_device": {
                "type": "string"
            },
            "efi_target": {
                "type": "string"
            },
            "log": {
                "type": "string"
            },
            "queue": {
                "type": "string"
            }
        }
    }

    _defaults = {
        "append": "",
        "failsafe_append": "showopts apm=off noresume nosmp maxcpus=0 "
                           "edd=off powersaved=off nohz=off highres=off "
                           "processor.max_cstate=1 nomodeset x11failsafe",
        "xen_kernel": "/boot/xen.gz",
        "xen_append": "",
        "boot_mount_point": "/boot",
        "log": "/var/log/update-bootloader.log",
        "queue": "/var/lib/update-bootloader/delayed"
    }

    def __init__(
            self, context: bootsync.context.RuntimeContext = None,
            path: pathlib.Path = None) -> None:
        self._context = context or bootsync.context.RuntimeContext()

        if path is None:
            # Load the configuration file from the first (most important)
            # configuration directory.  Fall back on /etc/xdg if no directory
            # is defined.
            xdg_config_dirs = os.getenv("XDG_CONFIG_DIRS")
            xdg_config_dir = xdg_config_dirs.split(":")[0] \
                if xdg_config_dirs else "/etc/xdg"
            path = self._context.path(
                pathlib.Path(xdg_config_dir) / "bootsync" / "bootsync.conf")

        try:
            with open(path, "r") as f:
                instance = bootsync.namespace.Namespace.loads(f.read())
        except FileNotFoundError:
            _log.debug("Configuration file %s not found, using defaults", path)
            instance = bootsync.namespace.Namespace()
        except ValueError as e:
            raise bootsync.error.InitializationError(
                f"Configuration file {path} is not valid JSON: {e}")

        # Validate the configuration file using JSON Schema.
        try:
            jsonschema.validate(instance, Configuration._schema)
        except jsonschema.exceptions.ValidationError as e:
            raise bootsync.error.InitializationError(
                f"Invalid configuration: {e.message}")

        self._instance = bootsync.namespace.Namespace(
            **{**Configuration._defaults, **instance})

    def __getattr__(self, name: str) -> typing.Any:
        return getattr(self._instance, name)

    @property
    def context(self) -> bootsync.context.RuntimeContext:
        return self._context

    def path(self, name: str) -> pathlib.Path:
        """
        Returns the configured path stored under name, mapped below the
        runtime root prefix.

        Keyword arguments:
        name -- the configuration key
        """
        return self._context.path(getattr(self._instance, name))

    def loader(self) -> str:
        """
        Returns the boot loader in use.  The configuration file takes
        precedence over LOADER_TYPE in /etc/sysconfig/bootloader; if neither
        names a boot loader, "none" is returned.
        """
        if self._instance.loader:
            return self._instance.loader

        sysconfig = self._context.path("/etc/sysconfig/bootloader")

        try:
            with open(sysconfig, "r") as f:
                buffer = f.read()
        except FileNotFoundError:
            _log.info("%s not found, no boot loader configured", sysconfig)
            return "none"

        m = re.search(
            r"^\s*LOADER_TYPE\s*=\s*[\"']?(?P<loader>[\w-]*)[\"']?\s*$",
            buffer, re.MULTILINE)

        if not m or not m.group("loader"):
            return "none"

        loader = m.group("loader").lower()

        if loader not in LOADERS:
            raise bootsync.error.InitializationError(
                f"Unsupported boot loader {loader} in {sysconfig}")

        return loader
