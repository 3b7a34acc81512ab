"""Public API for linkseal.

High-level functions that take an explicit StepConfig and key and return
complete results. Callers should use these instead of importing from
_internal.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Union

from linkseal._internal.io.envelope import read_envelope, write_envelope
from linkseal._internal.io.keys import load_public_key, load_signing_key
from linkseal._internal.runner import CommandResult, run_command
from linkseal.config import StepConfig
from linkseal.kernel.keys import NO_KEY, Key, PublicKey
from linkseal.kernel.link import Link, Metablock, assemble_link
from linkseal.kernel.recorder import ArtifactMap, RecordSettings, record_artifacts
from linkseal.kernel.signing import create_envelope, verify_envelope

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., CommandResult]

__all__ = [
    "record",
    "run_step",
    "run_step_to_file",
    "sign",
    "verify",
    "verify_link_file",
    "load_link",
    "dump_link",
    "load_signing_key",
    "load_public_key",
]


def record(paths: Iterable[str], settings: Optional[RecordSettings] = None) -> ArtifactMap:
    """Record artifact hashes for a path set (see RecordSettings)."""
    return record_artifacts(paths, settings)


def run_step(
    config: StepConfig,
    key: Key = NO_KEY,
    runner: CommandRunner = run_command,
) -> Metablock:
    """Record materials, run the command, record products, sign.

    The three phases run strictly in order, so products reflect the
    filesystem after the command finished. Any error aborts the run and no
    envelope is produced.

    Args:
        config: Validated step configuration
        key: Signing key, or NO_KEY for an unsigned envelope
        runner: Command runner (run_command unless substituted)

    Returns:
        Envelope holding the assembled Link
    """
    settings = config.record_settings()

    logger.info("Recording materials for step '%s'", config.name)
    materials = record_artifacts(config.material_paths, settings)

    byproducts = {}
    if config.command:
        result = runner(config.command, run_dir=config.run_dir, timeout=config.timeout)
        byproducts = result.to_byproducts()

    logger.info("Recording products for step '%s'", config.name)
    products = record_artifacts(config.product_paths, settings)

    link = assemble_link(
        name=config.name,
        materials=materials,
        products=products,
        byproducts=byproducts,
        command=config.command,
        environment=config.environment,
    )
    return create_envelope(link, key)


def run_step_to_file(
    config: StepConfig,
    out_dir: Union[str, Path],
    key: Key = NO_KEY,
    runner: CommandRunner = run_command,
) -> Path:
    """run_step, then write the envelope into out_dir; returns the file path."""
    metablock = run_step(config, key, runner)
    return write_envelope(metablock, out_dir)


def sign(link: Link, key: Key = NO_KEY) -> Metablock:
    """Wrap an already assembled link in an envelope, signed if key is present."""
    return create_envelope(link, key)


def verify(metablock: Metablock, keys: Sequence[PublicKey]) -> bool:
    """Return True if metablock carries a valid signature by every key.

    An empty key list never verifies.
    """
    if not keys:
        return False
    return all(verify_envelope(metablock, key) for key in keys)


def dump_link(metablock: Metablock, out_dir: Union[str, Path]) -> Path:
    return write_envelope(metablock, out_dir)


def load_link(path: Union[str, Path]) -> Metablock:
    return read_envelope(path)


def verify_link_file(path: Union[str, Path], keys: Sequence[PublicKey]) -> bool:
    """Load a link file and verify it against every key (see verify)."""
    return verify(read_envelope(path), keys)
