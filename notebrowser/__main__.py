"""Module entrypoint for ``python -m notebrowser``.

All argument parsing and command dispatch happen in ``notebrowser.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
