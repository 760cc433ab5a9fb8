import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]


def _install(session: nox.Session) -> None:
    """Install the project with its test group into the nox virtualenv."""
    session.run(
        "poetry",
        "install",
        "--with",
        "test",
        external=True,
    )


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest")


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (pure aggregates, pricing and stock checks)."""
    _install(session)
    session.run(
        "pytest",
        "tests/ordering/domain/",
        "tests/inventory/domain/",
        "tests/promotions/domain/",
    )


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_api(session: nox.Session) -> None:
    """Run the HTTP API and BDD suites."""
    _install(session)
    session.run("pytest", "tests/ordering/integration/", "tests/ordering/bdd/")
