"""
papertriage API - thin FastAPI surface over the collection runner and the
human review workflow.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import find_dotenv, load_dotenv

from .routes import collect, review
from .runtime import shutdown_runner

# Load local .env so provider keys are available in API mode.
load_dotenv(find_dotenv(usecwd=True), override=False)

app = FastAPI(
    title="papertriage API",
    description="Multi-source paper collection, relevance scoring and review",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": "0.1.0"}


app.include_router(collect.router, prefix="/api", tags=["Collect"])
app.include_router(review.router, prefix="/api", tags=["Review"])


@app.on_event("shutdown")
async def _close_runner():
    await shutdown_runner()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
