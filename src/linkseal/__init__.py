"""linkseal: tamper-evident, signed link metadata for supply chain steps."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("linkseal")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from linkseal.api import record, run_step, run_step_to_file, verify_link_file
from linkseal.config import StepConfig
from linkseal.codes import ErrorCode
from linkseal.errors import LinksealError
from linkseal.kernel.keys import NO_KEY, PublicKey, SigningKey
from linkseal.kernel.link import Link, Metablock, Signature

__all__ = [
    "__version__",
    "record",
    "run_step",
    "run_step_to_file",
    "verify_link_file",
    "StepConfig",
    "ErrorCode",
    "LinksealError",
    "NO_KEY",
    "PublicKey",
    "SigningKey",
    "Link",
    "Metablock",
    "Signature",
]
