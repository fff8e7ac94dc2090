"""ytd-fetch — single-video downloader with its own signature decipherer.

Fetches the watch page over a pluggable HTTP transport, resolves the
player's obfuscated signature cipher and streams the media to disk.
"""

from ytd_fetch.version import __version__

__all__: list[str] = ["__version__"]
