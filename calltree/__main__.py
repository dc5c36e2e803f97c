"""Module entrypoint for ``python -m calltree``.

All argument parsing and session setup happen in ``calltree.cli``.
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
