"""Device inventory and desired state manifests."""
from .inventory import DeviceInventory
from .manifest import Manifest, ManifestParser, ParseError, load_manifest, compute_checksum

__all__ = [
    "DeviceInventory",
    "Manifest",
    "ManifestParser",
    "ParseError",
    "load_manifest",
    "compute_checksum",
]
