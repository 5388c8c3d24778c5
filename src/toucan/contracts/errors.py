"""Exceptions raised at trust boundaries.

Compile-time anomalies in a user graph are never raised: they are collected
as CompileIssue records. The exceptions here cover malformed external
documents (catalog payloads, workflow files) where continuing would mean
guessing at the caller's intent.
"""


class CatalogError(ValueError):
    """Raised when a schema catalog document or schema record is malformed."""

    pass


class WorkflowFormatError(ValueError):
    """Raised when a workflow document cannot be read as nodes and edges."""

    pass
