"""Custom exceptions for scene conversion"""


class TileSmithError(Exception):
    """Base exception for conversion errors"""
    pass


class ArchiveError(TileSmithError):
    """Archive cannot be opened or a required entry is missing"""
    pass


class DecodeError(TileSmithError):
    """Texture, geometry or document bytes cannot be parsed"""

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class PackingError(TileSmithError):
    """Rectangle packer cannot place all patches"""
    pass


class ProjectionError(TileSmithError):
    """Point falls outside the valid domain of the CRS transform"""
    pass


class OutputError(TileSmithError):
    """Output directory or file cannot be created or written"""
    pass
