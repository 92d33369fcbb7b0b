"""Environment override helpers.

Reads .env files into key/value pairs for the environment tab. Uses
python-dotenv so quoting, comments and "export" prefixes behave the way
they do everywhere else.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple, Union

from dotenv import dotenv_values

from argform.lib.errors import ArgformError

logger = logging.getLogger(__name__)

__all__ = ["read_env_file", "merge_env_pairs", "seed_env_pairs"]

EnvPair = Tuple[str, str]


def read_env_file(path: Union[str, Path]) -> List[EnvPair]:
    """Read a .env file into ordered (key, value) pairs.

    Keys without a value ("FOO" on its own line) become empty strings.

    Raises:
        ArgformError: The file does not exist
    """
    env_path = Path(path)
    if not env_path.is_file():
        raise ArgformError(
            f"Environment file not found: {env_path}",
            suggestion="Check the path of the .env file.",
        )

    values = dotenv_values(env_path)
    pairs = [(key, value if value is not None else "") for key, value in values.items()]
    logger.debug("Read %d variable(s) from %s", len(pairs), env_path)
    return pairs


def merge_env_pairs(
    current: Sequence[EnvPair], incoming: Iterable[EnvPair]
) -> List[EnvPair]:
    """Merge pairs, replacing values of existing keys in place.

    New keys are appended in the order they arrive.
    """
    merged = [tuple(pair) for pair in current]
    index = {key: i for i, (key, _) in enumerate(merged)}
    for key, value in incoming:
        if key in index:
            merged[index[key]] = (key, value)
        else:
            index[key] = len(merged)
            merged.append((key, value))
    return merged  # type: ignore[return-value]


def seed_env_pairs(declared: Iterable[str]) -> List[EnvPair]:
    """Initial rows for declared variables: name filled in, value empty."""
    return [(name, "") for name in declared]
