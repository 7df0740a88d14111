"""appforge — scaffolding and maintenance tool for framework applications.

This distribution ships the ``pack`` command: compress an application tree
into a single tar.gz or zip archive ready to be extracted on a server.
"""

__all__ = [
    "__version__",
    "pack_application",
    "pack_directory",
    "staging_directory",
    "PackConfig",
    "PackResult",
    "ArchiveFormat",
    "PackError",
]
__version__ = "0.1.0"

from appforge.core.config import PackConfig  # noqa: E402, F401
from appforge.errors import PackError  # noqa: E402, F401
from appforge.model import ArchiveFormat  # noqa: E402, F401
from appforge.model.pack_result import PackResult  # noqa: E402, F401
from appforge.pack import (  # noqa: E402, F401
    pack_application,
    pack_directory,
    staging_directory,
)
