from fastapi import FastAPI
from location_requests.core.config import settings
from location_requests.routes.geocode_route import router as geocode_router

app = FastAPI(title="Location Requests")
app.include_router(geocode_router)

# --- Root Endpoint ---
@app.get("/")
async def root():
    return {
        "message": "Location request service",
        "status": "running",
        "geocoder": settings.GEOCODER_PROVIDER,
        "endpoints": {
            "health": "/health",
            "geocode": "/geocode",
            "reverse": "/reverse",
            "place_search": "/places/search",
            "place_detail": "/places/{place_id}",
            "docs": "/docs"
        },
        "version": "1.0.0"
    }

# --- Health Check ---
@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "Location Requests"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("location_requests.main:app", host="0.0.0.0", port=8000, reload=True)
