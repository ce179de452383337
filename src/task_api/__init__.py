"""
Task Manager API package.

The FastAPI application lives in ``task_api.main``; the client-side task
cache lives in ``task_api.client``.
"""
