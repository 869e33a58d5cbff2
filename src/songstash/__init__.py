"""songstash - Catalog song resource acquisition with pluggable providers."""

__version__ = "0.1.0"
__description__ = "Catalog song resource acquisition with pluggable providers"

from .core import SongStash
from .pipeline import AcquisitionPipeline

__all__ = [
    "SongStash",
    "AcquisitionPipeline",
    "__version__",
    "__description__",
]
