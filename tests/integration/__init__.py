"""tests.integration package

Integration-level suites that exercise Sheets+ through its HTTP API.  Keeping
them apart from the *unit* suites lets developers run the fast subset during
TDD while CI runs everything, or only `pytest -m integration`.
"""
