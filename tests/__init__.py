"""Test suite for the yaml-graft package.

This package contains unit and integration tests validating document
merging, operator parsing, dependency ordering, evaluation, pruning and
the command line interface.
"""
