"""Root logging for the ``onramp`` command.

``onramp.cli`` calls :func:`setup_logging` first thing, before it
imports the clients (``onramp.clients.llm_client`` pulls in litellm,
which reads ``LITELLM_LOG`` and attaches its own handlers on import).
Once those imports are done it calls
:func:`cleanup_third_party_handlers`. Library users that configure
logging themselves need neither.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

_LITELLM_LOGGERS = ("LiteLLM", "LiteLLM Router", "LiteLLM Proxy")

# Per-request chatter from the GitHub, LLM and Redis transports
_SUPPRESSED_LOGGERS = (
    *_LITELLM_LOGGERS,
    "httpx",
    "httpcore",
    "redis",
)

_configured = False
_handlers_cleaned = False


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls do nothing.

    ``main`` adjusts the root level afterwards from ``Settings.log_level``
    or ``--verbose``.
    """
    global _configured  # noqa: PLW0603
    if _configured:
        return
    _configured = True

    os.environ.setdefault("LITELLM_LOG", "WARNING")

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )

    for name in _SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def cleanup_third_party_handlers() -> None:
    """Route litellm records through the root handler only.

    Runs once, after ``onramp.cli`` has imported the LLM client.
    """
    global _handlers_cleaned  # noqa: PLW0603
    if _handlers_cleaned:
        return
    _handlers_cleaned = True

    for name in _LITELLM_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True
