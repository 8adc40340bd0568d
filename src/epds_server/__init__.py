"""epds_server — FastAPI REST API for the EPDS screening SDK.

Exposes ``SubmissionWorkflow`` as a single form-encoded endpoint, plus a
health probe and the ``epds-arrive-visit`` maintenance command.
"""
