"""tests.unit.tabular package

Unit suites for the CSV parser, the serializer and the grid editor.  These
modules are pure functions/objects, so no fixtures or mocks are required.
"""
