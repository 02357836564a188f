"""vidgrab — rendition-aware video downloader.

Picks the right stream from an extracted rendition catalog and transfers
it to disk with bounded retries.
"""

from vidgrab.version import __version__

__all__: list[str] = ["__version__"]
