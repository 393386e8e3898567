"""
Serverless entry point for the sales API.
Exposes the FastAPI application as an AWS Lambda / Vercel compatible handler.
"""
from mangum import Mangum
from sales_api.main import app

# Lifespan is skipped: tables are expected to exist before cold starts
handler = Mangum(app, lifespan="off")
