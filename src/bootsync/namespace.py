#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import json
import typing


class Namespace(dict):
    """Dictionary subclass which exposes its key: value pairs as attributes."""

    def __init__(self, **kwargs: typing.Any) -> None:
        super().__init__(kwargs)

    def __getattr__(self, name: str) -> typing.Any:
        return self.get(name)

    def __setattr__(self, name: str, value: typing.Any) -> None:
        self[name] = value

    @staticmethod
    def loads(buffer: str) -> typing.Any:
        """
        Decodes a JSON document, turning every JSON object into a Namespace.

        Keyword arguments:
        buffer -- the JSON document
        """
        return json.loads(
            buffer, object_hook=lambda kwargs: Namespace(**kwargs))
