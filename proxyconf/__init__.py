"""proxyconf: versioned migrations for the proxy configuration file."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("proxyconf")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development
