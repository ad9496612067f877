"""Run the release-resolver command line tool with `python -m release_resolver`."""

from release_resolver.tool.release_resolver import main

if __name__ == "__main__":
    main()
