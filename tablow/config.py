import logging
import os
from typing import Optional

from attrs import define
from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

ENV_CONN_STRING = "TABLOW_DB_CONN_STRING"

# The `--host` and `--port` options of the command line read these.
ENV_HOST = "TABLOW_HOST"
ENV_PORT = "TABLOW_PORT"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080


@define
class Settings:
    """Settings read from the environment.

    Attributes:
        c_string: The connection string to the database; None when not set.
    """

    c_string: Optional[str] = None

    @classmethod
    def from_env(cls, use_dotenv: bool = True) -> "Settings":
        """Read the settings from the environment.

        Values from a `.env` file are loaded first (without overriding the
        variables that are already set).
        """
        if use_dotenv:
            load_dotenv(find_dotenv(usecwd=True))

        result = cls(c_string=os.environ.get(ENV_CONN_STRING) or None)
        logger.debug("Settings: %s", result)
        return result
