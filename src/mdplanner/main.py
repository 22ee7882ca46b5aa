"""Main entry point for the planner CLI."""
from mdplanner.cli import cli


def main():
    cli(prog_name="mdplanner")

if __name__ == "__main__":
    main()
