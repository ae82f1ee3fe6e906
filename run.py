"""
Entry point for the ASV tester web service.

Running this script with ``python run.py`` starts the FastAPI server
that exposes the validation API.  The application defined in
``backend/app/main.py`` is imported after adjusting the Python path to
include the repository root.  The bind address can be changed with the
``ASV_TESTER_HOST`` and ``ASV_TESTER_PORT`` environment variables.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import logging
import uvicorn

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000


def _port_from_env() -> int:
    raw = os.environ.get("ASV_TESTER_PORT", "").strip()
    if not raw:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"ASV_TESTER_PORT must be an integer, got {raw!r}") from None


def main() -> None:
    """Run the Uvicorn server hosting the tester API."""
    # Determine the repository root relative to this file and ensure it is on
    # sys.path so that ``backend`` can be imported as a package.
    repo_root = Path(__file__).resolve().parent
    if str(repo_root) not in sys.path:
        sys.path.append(str(repo_root))

    # Import the FastAPI application.  We import inside main() to avoid
    # modifying sys.path at module import time.
    from backend.app.main import app  # type: ignore

    host = os.environ.get("ASV_TESTER_HOST", DEFAULT_HOST)
    uvicorn.run(app, host=host, port=_port_from_env())


if __name__ == "__main__":
    main()
