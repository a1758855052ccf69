"""
App module for the dive importer.
Contains the command line front end.
"""
