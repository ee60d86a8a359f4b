"""
Trade Journal API Module

FastAPI application factory, service container and routers.
"""
