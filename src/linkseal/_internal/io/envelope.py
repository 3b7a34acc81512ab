"""Link envelope files: atomic writes, validated reads."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from linkseal._internal.canonical_json import readable_dumps
from linkseal.errors import CanonicalizationError, EnvelopeFormatError, InvalidStepNameError
from linkseal.kernel.canonical import encode_canonical, parse_json
from linkseal.kernel.link import Metablock
from linkseal.kernel.signing import envelope_filename

logger = logging.getLogger(__name__)


def write_envelope(metablock: Metablock, directory: Union[str, Path]) -> Path:
    """Write metablock into directory under its deterministic file name.

    The file is written to a temporary name and renamed into place, so an
    interrupted write never leaves a partial link behind.

    Returns:
        Path of the written file
    """
    directory = Path(directory)
    out_path = directory / envelope_filename(metablock)
    data = metablock.to_dict()
    # Fails on values without canonical form before anything touches disk
    encode_canonical(data)
    text = readable_dumps(data)

    directory.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", suffix=".link", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        os.replace(tmp_name, out_path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise
    logger.info("Wrote link metadata to '%s'", out_path)
    return out_path


def read_envelope(path: Union[str, Path]) -> Metablock:
    """Load a link file written by write_envelope (or any equivalent JSON).

    Raises:
        FileNotFoundError: If path does not exist
        EnvelopeFormatError: If the content is not a valid envelope
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise EnvelopeFormatError(f"Link file is not UTF-8: {path}", details={"path": str(path)}) from e
    try:
        return Metablock.model_validate(parse_json(text))
    except (ValidationError, CanonicalizationError, InvalidStepNameError) as e:
        raise EnvelopeFormatError(
            f"Invalid link file {path}: {e}", details={"path": str(path)}
        ) from e
