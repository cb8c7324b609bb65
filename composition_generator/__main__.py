"""Entry point wrapper for ``python -m composition_generator``.

Execution is forwarded to :func:`composition_generator.cli.main` so the
module invocation and the installed ``composition-generator`` console script
behave identically.

Example
-------
The following invocation prints a two section composition as JSON::

    python -m composition_generator --key "D dorian" --structure verse-chorus --seed 1
"""

from .cli import main

if __name__ == "__main__":
    main()
