from fastapi import FastAPI, Request
from wipshare.db.session import SESSION, reset_session, start_default_session
from wipshare.api.routes.tracks import router as tracks_router
from wipshare.api.routes.waveforms import router as waveforms_router

app = FastAPI(title="wipshare API")


@app.middleware("http")
async def scoped_db_session(request: Request, call_next):
    # one AsyncSession per request
    token = start_default_session()
    try:
        return await call_next(request)
    finally:
        await SESSION.remove()
        reset_session(token)


app.include_router(tracks_router, prefix="/tracks", tags=["tracks"])
app.include_router(waveforms_router, prefix="/waveforms", tags=["waveforms"])


@app.get("/health")
def health():
    return "SUCCESS"
