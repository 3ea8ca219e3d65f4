"""Azure Stack marketplace and resource provider tools."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("azs-tools")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
