"""Allow ``python -m microssg build`` as an alternative to the ``microssg`` script."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
