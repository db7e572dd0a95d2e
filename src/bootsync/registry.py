#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import logging
import typing

import bootsync.error
import bootsync.service.boot

_log = logging.getLogger(__name__)

Filter = bootsync.service.boot.Filter
Section = bootsync.service.boot.Section


class SectionRegistry(object):
    """
    View of the sections stored in a boot loader configuration.  Nothing is
    cached: every operation re-reads the configuration and, if it changes
    anything, writes it back while holding the configuration lock.
    """

    def __init__(self, loader: bootsync.service.boot.Loader) -> None:
        self._loader = loader

    def sections(self) -> typing.List[Section]:
        """Returns all sections of the boot loader configuration."""
        return self._loader.read()

    def count_matching(self, filter: Filter) -> int:
        """
        Returns the number of sections matching filter.

        Keyword arguments:
        filter -- the section filter
        """
        return len(_matching(self._loader.read(), filter))

    def default_section(self) -> typing.Optional[Section]:
        """Returns the default section or None."""
        return _default(self._loader.read())

    def add(
            self, section: Section, force: bool = False,
            siblings: typing.Sequence[Section] = (),
            default: typing.Callable[
                [typing.Optional[Section]], bool] = None) -> None:
        """
        Adds section and its sibling sections.  Raises AlreadyExistsError if
        a primary section of the same type already boots the same image,
        unless force is set.  Failsafe sections do not count as duplicates.

        Keyword arguments:
        section  -- the section to add
        force    -- whether to add duplicate sections (default False)
        siblings -- auxiliary sections to add along with section
        default  -- called with the current default section (or None) to
                    decide whether section becomes the new default; if not
                    given, section.is_default is used as it is
        """
        with self._loader.lock():
            sections = self._loader.read()
            count = len(_matching(sections, Filter(
                type=section.type, image=section.image)))

            if count:
                if not force:
                    raise bootsync.error.AlreadyExistsError(
                        f"A {section.type.value} section for {section.image} "
                        f"already exists")

                _log.warning(
                    "Adding section for %s although %d matching section(s) "
                    "exist, as requested", section.image, count)

            if default is not None:
                section.is_default = default(_default(sections))

            # Only one section may be the default.
            if section.is_default:
                for section_ in sections:
                    section_.is_default = False

            sections += [section] + list(siblings)
            self._loader.write(sections)

        _log.info(
            "Added section %r%s%s", section.name,
            " as default" if section.is_default else "",
            "".join(f", {sibling.name!r}" for sibling in siblings))

    def remove(
            self, filter: Filter, force: bool = False,
            include_failsafe: bool = False) -> int:
        """
        Removes the sections matching filter and returns their number.
        Removing nothing is not an error.  Raises AmbiguousRemovalError if
        more than one section matches, unless force is set.

        Keyword arguments:
        filter           -- the section filter
        force            -- whether to remove all of several matching
                            sections (default False)
        include_failsafe -- whether to remove the failsafe sections booting
                            the same images as well (default False)
        """
        with self._loader.lock():
            sections = self._loader.read()
            matching = _matching(sections, filter)

            if not matching:
                _log.info("No section matches %r, nothing to remove", filter)
                return 0

            if len(matching) > 1 and not force:
                raise bootsync.error.AmbiguousRemovalError(
                    f"{len(matching)} sections match, refusing to remove "
                    f"them", len(matching))

            removed = list(matching)

            if include_failsafe:
                for section in matching:
                    removed += _matching(sections, Filter(
                        type=bootsync.service.boot.SectionType.IMAGE,
                        image=section.image, initrd=section.initrd,
                        origins=[bootsync.service.boot.Origin.FAILSAFE]))

            self._loader.write([
                section for section in sections
                if not any(section is removed_ for removed_ in removed)])

        for section in removed:
            _log.info("Removed section %r", section.name)

        return len(matching)


def _matching(
        sections: typing.Sequence[Section],
        filter: Filter) -> typing.List[Section]:
    return [section for section in sections if filter.matches(section)]


def _default(sections: typing.Sequence[Section]) -> typing.Optional[Section]:
    for section in sections:
        if section.is_default:
            return section

    return None
