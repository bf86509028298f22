"""Project root entry point for launching the web interface."""

from __future__ import annotations

import os

from keyhub.web import create_app


def main():
    app = create_app()
    app.run(
        host=os.environ.get("KEYHUB_HOST", "127.0.0.1"),
        port=int(os.environ.get("KEYHUB_PORT", "5500")),
        debug=os.environ.get("KEYHUB_DEBUG") == "1",
    )


if __name__ == "__main__":
    main()
