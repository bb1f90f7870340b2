"""Allow ``python -m changed_objects``."""

from changed_objects.cli import main


if __name__ == "__main__":
    main(prog_name="changed-objects")
