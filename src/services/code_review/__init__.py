"""Asynchronous code analysis pipeline: client, parser, store and job executor."""
