#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import argh
import logging
import os
import sys
import syslog
import typing

import bootsync.configuration
import bootsync.context
import bootsync.coordinator
import bootsync.error
import bootsync.service.block
import bootsync.service.installer
import bootsync.service.mbr
import bootsync.service.queue

_log = logging.getLogger(__name__)

Operation = bootsync.coordinator.Operation


class Parser(argh.ArghParser):
    """Argument parser exiting with 1 on usage errors."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


class Client(object):
    """update-bootloader command line client."""

    def __init__(
            self, configuration: bootsync.configuration.Configuration,
            argv: typing.Sequence[str],
            installer: bootsync.service.installer.Installer = None,
            resolver: bootsync.service.block.Resolver = None) -> None:
        self._configuration = configuration
        self._context = configuration.context
        self._argv = list(argv)
        self._installer = installer
        self._resolver = resolver

    @argh.arg("--add", help="add a section for the image")
    @argh.arg("--remove", help="remove the section of the image")
    @argh.arg("--refresh", help="rewrite the boot loader configuration")
    @argh.arg("--reinit", help="rewrite the configuration and reinstall the "
              "boot loader")
    @argh.arg("--image", metavar="FILE", help="kernel image")
    @argh.arg("--initrd", metavar="FILE", help="initial ramdisk")
    @argh.arg("--xen", help="add or remove a Xen section")
    @argh.arg("--xen-kernel", metavar="FILE", help="Xen hypervisor image")
    @argh.arg("--name", metavar="NAME", help="section name")
    @argh.arg("--default", help="make the section the default if there is "
              "no default yet")
    @argh.arg("--force-default", help="always make the section the default")
    @argh.arg("--force", help="add duplicate sections or remove all of "
              "several matching sections")
    @argh.arg("--previous", help="the image is the previous kernel")
    @argh.arg("--examinembr", metavar="DEVICE", help="print the type of boot "
              "code found in the MBR of DEVICE")
    @argh.arg("--run-delayed", help="run the commands delayed during "
              "installation")
    def update(
            self, *, add: bool = False, remove: bool = False,
            refresh: bool = False, reinit: bool = False, image: str = None,
            initrd: str = None, xen: bool = False, xen_kernel: str = None,
            name: str = None, default: bool = False,
            force_default: bool = False, force: bool = False,
            previous: bool = False, examinembr: str = None,
            run_delayed: bool = False) -> None:
        """Adds, removes or refreshes boot loader sections."""
        if examinembr is not None:
            result = bootsync.service.mbr.examine(
                self._context.path(examinembr))

            if result is None:
                raise bootsync.error.NoDataError(
                    f"Unable to read the MBR of {examinembr}")

            print(result)
            return

        if run_delayed:
            queue = bootsync.service.queue.CommandLog(
                self._configuration.path("queue"))

            if not queue.drain(self._replay):
                raise bootsync.error.Error(
                    "At least one delayed command failed")

            return

        operations = [
            operation for operation, requested in [
                (Operation.ADD, add), (Operation.REMOVE, remove),
                (Operation.REFRESH, refresh), (Operation.REINIT, reinit)]
            if requested]

        request = bootsync.coordinator.Request(
            operations, image=image, initrd=initrd, xen=xen,
            xen_kernel=xen_kernel, name=name, default=default,
            force_default=force_default, force=force, previous=previous,
            argv=self._argv)

        bootsync.coordinator.Coordinator(
            self._configuration, self._installer, self._resolver).run(request)

    def _replay(self, argv: typing.List[str]) -> bool:
        try:
            configuration = bootsync.configuration.Configuration(
                self._context.replaying())
            return 0 == run(
                argv, configuration, self._installer, self._resolver)
        except Exception:
            # The remaining delayed commands still have to run.
            _log.exception("Delayed command %s failed", " ".join(argv))
            return False


def run(
        args: typing.Sequence[str],
        configuration: bootsync.configuration.Configuration,
        installer: bootsync.service.installer.Installer = None,
        resolver: bootsync.service.block.Resolver = None) -> int:
    """
    Processes one command line and returns the exit code.

    Keyword arguments:
    args          -- the command line arguments, without the program name
    configuration -- the configuration
    installer     -- the installer to use (default: run the real programs)
    resolver      -- the device resolver to use (default: the live system)
    """
    _log.info("update-bootloader %s", " ".join(args))

    try:
        client = Client(configuration, args, installer, resolver)
        parser = Parser(
            prog="update-bootloader",
            description="Updates the boot loader configuration.")
        argh.set_default_command(parser, client.update)
        argh.dispatch(parser, argv=list(args))
    except bootsync.error.Error as e:
        print(f"Failed to update the boot loader: {e.message}.",
              file=sys.stderr)
        syslog.syslog(syslog.LOG_ERR, e.message)
        _log.error("%s: %s", type(e).__name__, e.message)
        return 1
    except OSError as e:
        message = f"{e.filename}: {e.strerror}" if e.filename else str(e)
        print(f"Failed to update the boot loader: {message}.",
              file=sys.stderr)
        syslog.syslog(syslog.LOG_ERR, message)
        _log.error("OSError: %s", message)
        return 1
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1

    return 0


def _setup_logging(
        configuration: bootsync.configuration.Configuration) -> None:
    path = configuration.path("log")
    logger = logging.getLogger("bootsync")
    logger.setLevel(logging.DEBUG)

    try:
        handler = logging.FileHandler(path, mode="a")
    except OSError as e:
        syslog.syslog(
            syslog.LOG_WARNING, f"Unable to open log file {path}: "
            f"{e.strerror}")
        return

    handler.setFormatter(logging.Formatter(
        f"%(asctime)s <%(levelname)s> [{os.getpid()}] %(name)s: "
        f"%(message)s"))
    logger.addHandler(handler)


def main(args: typing.List[str] = None) -> None:
    """Entry point."""
    if args is None:
        args = sys.argv[1:]

    syslog.openlog("update-bootloader")

    try:
        configuration = bootsync.configuration.Configuration(
            bootsync.context.RuntimeContext.from_environment())
    except bootsync.error.InitializationError as e:
        print(f"Failed to start update-bootloader: {e.message}.",
              file=sys.stderr)
        sys.exit(1)

    _setup_logging(configuration)
    sys.exit(run(args, configuration))


if __name__ == "__main__":
    main()
