#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import logging
import re

import bootsync.configuration

_log = logging.getLogger(__name__)


class Product(object):
    """Display name of the running operating system."""

    def __init__(
            self,
            configuration: bootsync.configuration.Configuration) -> None:
        self._configuration = configuration

    def name(self) -> str:
        """
        Returns the configured product name, falling back on PRETTY_NAME
        from os-release and then on "Linux".
        """
        if self._configuration.product:
            return self._configuration.product

        for path in ["/etc/os-release", "/usr/lib/os-release"]:
            try:
                with open(
                        self._configuration.context.path(path), "r") as f:
                    buffer = f.read()
            except FileNotFoundError:
                continue

            m = re.search(
                r"^PRETTY_NAME=[\"']?(?P<name>.*?)[\"']?\s*$", buffer,
                re.MULTILINE)

            if m and m.group("name"):
                return m.group("name")

        _log.warning("Unable to determine the product name")
        return "Linux"
