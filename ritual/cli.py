import sys
from pathlib import Path

import fncli

from .core.errors import RitualError
from .lib.errors import exit_error


def main():
    fncli.autodiscover(Path(__file__).parent, "ritual")

    user_args = sys.argv[1:]
    if not user_args:
        from .habits import habits

        habits()
        return
    argv = ["ritual", *user_args]
    try:
        code = fncli.dispatch(argv)
    except RitualError as e:
        exit_error(str(e))
    sys.exit(code)


if __name__ == "__main__":
    main()
