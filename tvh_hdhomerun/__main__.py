"""Allow ``python -m tvh_hdhomerun`` to launch the tuner service."""

from __future__ import annotations

import sys


def main() -> None:
    from tvh_hdhomerun import run
    raise SystemExit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
