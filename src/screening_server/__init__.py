"""screening_server: FastAPI REST API for the screening SDK.

Exposes the flow controller (draft-based screening wizard), health
assistant dashboards, the admin console and reference catalogs over HTTP.
"""
