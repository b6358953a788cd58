"""Package entry point for ``python -m gloss_index``.

WHY: Users run the indexer as ``python -m gloss_index build`` and the
read endpoint as ``python -m gloss_index serve`` without installing the
console script.

HOW: Delegates to the CLI's main() function, which dispatches on the
subcommand.
"""

from gloss_index.cli import main

if __name__ == "__main__":
    main()
