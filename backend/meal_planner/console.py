"""Process-wide console channels.

``console.log`` / ``console.info`` write to stdout, ``console.warn`` /
``console.error`` to stderr, with ``print(*args)`` semantics.  Application code
emits developer diagnostics through these four channels; the log capture in
:mod:`meal_planner.log_capture` intercepts them.
"""

import sys


class Console:
    def log(self, *args: object) -> None:
        print(*args, file=sys.stdout)

    def info(self, *args: object) -> None:
        print(*args, file=sys.stdout)

    def warn(self, *args: object) -> None:
        print(*args, file=sys.stderr)

    def error(self, *args: object) -> None:
        print(*args, file=sys.stderr)


console = Console()
