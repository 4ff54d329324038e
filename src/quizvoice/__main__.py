"""Entry point for running quizvoice as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the quizvoice CLI application."""
    app()


if __name__ == "__main__":
    main()
