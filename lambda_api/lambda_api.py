"""
AWS Lambda handler for the portfolio API

Routes all API Gateway requests through the FastAPI application.
"""

from mangum import Mangum
from portfolio_api.main import app

# Create Mangum adapter for FastAPI
handler = Mangum(app, lifespan="auto")
