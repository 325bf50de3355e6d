# main.py
"""Main entry point for the knowledge-graph QA service."""

import os

import uvicorn
from dotenv import load_dotenv

# Load environment variables before settings are read by the app module
load_dotenv()


def main():
    """Run the development server"""
    uvicorn.run(
        "graphqa.web.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )


if __name__ == "__main__":
    main()
