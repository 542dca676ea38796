"""External services: the language model behind the generation endpoint and
the upload endpoint that publishes finished documents."""

from .upload_client import upload_document  # noqa: F401
