"""Entry point for ``python -m sentence_masker``."""

from __future__ import annotations

from sentence_masker.cli import app


def main() -> None:
    app(prog_name="sentence-masker")


if __name__ == "__main__":
    main()
