"""
Toucan: node-graph authoring core for prompt-queue generation backends.

Turns an editable visual graph of typed nodes into a schema-valid execution
request, and advances control fields between runs so repeated submissions
are not collapsed by the backend's execution cache.
"""

__version__ = "0.1.0"
