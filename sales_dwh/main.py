"""
ASGI entry point for the serving API.

    uvicorn sales_dwh.main:app
"""

from sales_dwh.serving.api import create_api_app

app = create_api_app()
