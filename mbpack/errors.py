# MBPack: a tool for MBTiles files
# Supports importing, exporting, and more
#
# (c) Development Seed 2012
# Licensed under BSD


class MBPackError(Exception):
    pass


class SourceNotFoundError(MBPackError):
    """The tile directory to import does not exist."""


class StorageOpenError(MBPackError):
    """The MBTiles file could not be opened or created."""


class MalformedGridJsonError(MBPackError):
    """A .grid.json file could not be parsed, even after removing a callback."""

    def __init__(self, message, path=None):
        MBPackError.__init__(self, message)
        self.path = path


class MalformedMetadataError(MBPackError):
    pass


class IOFailure(MBPackError):
    """Reading or writing a single tile or grid file failed."""

    def __init__(self, message, path=None):
        MBPackError.__init__(self, message)
        self.path = path


class AlreadyCompactedError(MBPackError):
    pass


class MissingMetadataWarning(UserWarning):
    pass
