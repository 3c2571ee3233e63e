import logging
from fastapi import FastAPI
from assessment_banks.core.config import settings
from assessment_banks.api.banks import router as banks_router
from assessment_banks.api.jwts import router as jwts_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)
app.include_router(banks_router, prefix=f"{settings.API_V1_PREFIX}/banks", tags=["question-banks"])
app.include_router(jwts_router, prefix=f"{settings.API_V1_PREFIX}/jwts", tags=["jwts"])

@app.get("/health")
def health(): return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "assessment_banks.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )
