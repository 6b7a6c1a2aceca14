"""
Task Manager web app package.

The FastAPI application lives in ``taskapp.main`` (run with
``uvicorn taskapp.main:app``).
"""
