"""Nox sessions for lint, type checking and the test suite."""

from __future__ import annotations

import nox

nox.options.sessions = ["lint", "typecheck", "tests"]


@nox.session
def lint(session: nox.Session) -> None:
    """Run ruff checks and the format check without mutating files."""
    session.install("ruff")
    session.run("ruff", "check", "src", "tests")
    session.run("ruff", "format", "--check", "src", "tests")


@nox.session(name="lint-fix")
def lint_fix(session: nox.Session) -> None:
    session.install("ruff")
    session.run("ruff", "check", "--fix", "src", "tests")
    session.run("ruff", "format", "src", "tests")


@nox.session
def typecheck(session: nox.Session) -> None:
    """Type-check the wavescope package with its runtime dependencies."""
    session.install("mypy")
    session.install("-e", ".")
    session.run("mypy", "src/wavescope")


@nox.session
def tests(session: nox.Session) -> None:
    """Run pytest; PortAudio is not needed since tests use the fake output."""
    session.install("-e", ".[test]")
    session.run("pytest", *session.posargs)


@nox.session(python=False)
def doctor(session: nox.Session) -> None:
    """Report audio output and decoder readiness for the current environment."""
    session.run("wavescope", "--doctor", external=True)
