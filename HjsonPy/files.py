import logging
from pathlib import Path

from .decoder import unmarshal
from .encoder import marshal
from .errors import HjsonFileError
from .options import DecoderOptions, EncoderOptions
from .value import Value

logger = logging.getLogger(__name__)

def unmarshal_from_file(path: str | Path, options: DecoderOptions | None = None) -> Value:
    """
    Reads a whole file and creates a Value tree from its Hjson content.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.error("Could not read Hjson file %s: %s", path, e)
        raise HjsonFileError(e.errno, f"Could not read file: {e.strerror}", str(path)) from e
    logger.debug("Read %d bytes from %s", len(data), path)
    return unmarshal(data, options)

def marshal_to_file(value: Value, path: str | Path, options: EncoderOptions | None = None) -> None:
    """
    Writes the Hjson text of the value tree to a file, ending with a newline.
    """
    path = Path(path)
    eol = options.eol if options else "\n"
    data = (marshal(value, options) + eol).encode("utf-8")
    try:
        path.write_bytes(data)
    except OSError as e:
        logger.error("Could not write Hjson file %s: %s", path, e)
        raise HjsonFileError(e.errno, f"Could not write file: {e.strerror}", str(path)) from e
    logger.debug("Wrote %d bytes to %s", len(data), path)
