from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scriptlens.routers import analysis, documents

app = FastAPI(
    title="Script Lens Server",
    description="Outline and member-reference analysis for TypeScript/JavaScript scripts.",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for local development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include Routers
app.include_router(analysis.router)
app.include_router(documents.router)

@app.get("/api-status")
async def root():
    return {"message": "Script Lens Server is running. Visit /docs for API documentation."}
