"""
Vercel Serverless Entry Point for the Moz API proxy
Using Mangum for ASGI to AWS Lambda adapter
"""
from mangum import Mangum

from mozproxy.main import app

# Mangum handler for serverless
handler = Mangum(app, lifespan="off")
