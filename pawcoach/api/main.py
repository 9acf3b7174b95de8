"""ASGI entrypoint for FastAPI."""

from fastapi import FastAPI

from pawcoach.api.server import app as pawcoach_app

app: FastAPI = pawcoach_app
